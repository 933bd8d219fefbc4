from dalight.fsutil import exists


def test_existing_file(tmp_path):
    path = tmp_path / "file.txt"
    path.write_text("data")
    assert exists(path) is True
    assert exists(str(path)) is True


def test_existing_directory(tmp_path):
    assert exists(tmp_path) is True


def test_missing_path(tmp_path):
    assert exists(tmp_path / "missing") is False
    assert exists(tmp_path / "missing" / "deeper") is False


def test_removed_file(tmp_path):
    path = tmp_path / "gone"
    path.write_text("x")
    path.unlink()
    assert exists(path) is False