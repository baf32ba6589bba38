from dataclasses import replace

from uncso2.pkgoptions import PkgFileOptions


def test_tfo_disabled_by_default():
    options = PkgFileOptions()
    assert options.tfo_pkg is False


def test_tfo_can_be_enabled_and_disabled():
    options = PkgFileOptions()
    options.tfo_pkg = True
    assert options.tfo_pkg is True
    options.tfo_pkg = False
    assert options.tfo_pkg is False


def test_options_compare_by_value():
    assert PkgFileOptions(tfo_pkg=True) == replace(PkgFileOptions(), tfo_pkg=True)
    assert PkgFileOptions(tfo_pkg=True) != PkgFileOptions()