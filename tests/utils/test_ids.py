import pytest

from fileshare.utils.ids import BASE62_CHARS, FILE_ID_LENGTH, b62encode, generate_file_id, is_safe_file_id


class TestBase62:
    """Base62 encoding tests"""

    def test_zero(self):
        assert b62encode(0) == "0"

    def test_known_values(self):
        assert b62encode(61) == "Z"
        assert b62encode(62) == "10"
        assert b62encode(12345) == "3aB"

    def test_max_uuid_fits_in_id_length(self):
        assert len(b62encode(2**128 - 1)) <= FILE_ID_LENGTH


class TestGenerateFileId:
    """File id generation tests"""

    def test_fixed_length_and_alphabet(self):
        for _ in range(200):
            file_id = generate_file_id()
            assert len(file_id) == FILE_ID_LENGTH
            assert set(file_id) <= set(BASE62_CHARS)

    def test_ids_are_unique(self):
        ids = {generate_file_id() for _ in range(1000)}
        assert len(ids) == 1000

    def test_generated_ids_are_safe(self):
        assert is_safe_file_id(generate_file_id())


class TestIsSafeFileId:
    """File id safety checks"""

    @pytest.mark.parametrize("file_id", ["abc", "3kT0cQh2mVwq1cS0pWf9Zb", "with-dash_and_underscore", "x" * 64])
    def test_safe(self, file_id):
        assert is_safe_file_id(file_id)

    @pytest.mark.parametrize("file_id", [None, "", "../secret", "a/b", "a\\b", "x" * 65, "space here", "ü", "abc\n"])
    def test_unsafe(self, file_id):
        assert not is_safe_file_id(file_id)
