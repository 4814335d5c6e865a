"""
Tests for the command line interface.
"""

import io

import pytest

from itanium_abi_demangler.cli import main


def test_symbols_from_arguments(capsys):
    main(["_ZN5space3fooEii", "_ZTV3foo"])

    assert capsys.readouterr().out == "space::foo(int, int)\nvtable for foo\n"


def test_symbols_from_stdin(capsys, monkeypatch):
    monkeypatch.setattr("sys.stdin", io.StringIO("_Z3foov\n\n  not_mangled  \n"))
    main([])

    assert capsys.readouterr().out == "foo()\nnot_mangled\n"


def test_failures_are_echoed(capsys):
    main(["junk", "__Z3foov"])
    assert capsys.readouterr().out == "junk\nfoo()\n"

    main(["--no-strip-underscore", "__Z3foov"])
    assert capsys.readouterr().out == "__Z3foov\n"


def test_error_on_failure():
    with pytest.raises(ValueError):
        main(["-e", "junk"])


def test_options(capsys):
    main(["--adjacent-angles", "-p", "_ZNSt6vectorIiSaIiEE9push_backERKi"])
    assert capsys.readouterr().out == "std::vector<int, std::allocator<int>>::push_back\n"

    main(["--strict-extensions", "_Z1fu3foo"])
    assert capsys.readouterr().out == "_Z1fu3foo\n"


def test_invalid_recursion_limit():
    with pytest.raises(SystemExit):
        main(["--recursion-limit", "0", "_Z3foov"])
    with pytest.raises(SystemExit):
        main(["--render-budget", "0", "_Z3foov"])
