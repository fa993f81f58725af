import pytest

from vulnfeed.services.matcher.rpmver import Version, compare_strings, rpmvercmp


class TestRpmvercmp:
    @pytest.mark.parametrize(
        "a,b,expected",
        [
            ("1.0", "1.0", 0),
            ("1.0", "2.0", -1),
            ("1.10", "1.9", 1),
            ("1.05", "1.5", 0),
            ("1.0a", "1.0", 1),
            ("2.0.1", "2.0a", 1),
            ("1.0~rc1", "1.0", -1),
            ("1.0~rc1", "1.0~rc2", -1),
            ("1.0^git1", "1.0", 1),
            ("1.0^git1", "1.0.1", -1),
            ("1.0^", "1.0^git1", -1),
            ("el8_8", "el8.8", 0),
        ],
    )
    def test_ordering(self, a, b, expected):
        assert rpmvercmp(a, b) == expected
        assert rpmvercmp(b, a) == -expected


class TestVersion:
    def test_parse_full_evra(self):
        v = Version.parse("1:18.17.1-1.module+el8.8.0+21166+8deaec44.x86_64")
        assert v == Version(1, "18.17.1", "1.module+el8.8.0+21166+8deaec44", "x86_64")
        assert str(v) == "1:18.17.1-1.module+el8.8.0+21166+8deaec44.x86_64"

    def test_parse_without_epoch_or_arch(self):
        assert Version.parse("2.4.37-56.el8") == Version(0, "2.4.37", "56.el8", "")

    def test_unknown_suffix_is_not_an_arch(self):
        assert Version.parse("1.0-1.el8").release == "1.el8"

    def test_epoch_wins(self):
        assert compare_strings("1:1.0-1", "9.9-9") == 1

    def test_missing_release_compares_equal(self):
        assert compare_strings("1.0", "1.0-5.el8") == 0

    def test_release_breaks_ties(self):
        assert compare_strings("1.0-4.el8", "1.0-10.el8") == -1
