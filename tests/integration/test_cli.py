"""
Tests for the command line entry point.
"""

import pytest

from linspec.__main__ import main
from linspec.ir.serialization import deserialize_table


class TestCLI:
    def test_vector_compact(self, capsys):
        assert main(["vector", "2", "--prefix", "v", "--compact"]) == 0
        out = capsys.readouterr().out
        lines = out.splitlines()
        assert len(lines) == 9
        assert all(line.startswith("(function ") for line in lines)
        assert '"vplus"' in lines[0]

    def test_output_reads_back(self, capsys):
        main(["vector", "3", "--prefix", "v", "--compact"])
        out = capsys.readouterr().out
        table = deserialize_table("(table " + out + ")")
        assert set(table) >= {"vplus", "vdot", "vunit"}

    def test_complex_field(self, capsys):
        assert main(["vector", "2", "--prefix", "c", "--field", "complex", "--compact"]) == 0
        out = capsys.readouterr().out
        assert '"cdot"' in out
        assert '"cnorm"' not in out

    def test_matrix_operations(self, capsys):
        assert main(["matrix", "2", "--operations", "plus, transpose", "--compact"]) == 0
        lines = capsys.readouterr().out.splitlines()
        assert len(lines) == 2
        assert '"transpose"' in lines[1]

    def test_bad_dimension(self, capsys):
        assert main(["vector", "0"]) == 1
        captured = capsys.readouterr()
        assert captured.out == ""
        assert "linspec: error: dimension must be >= 1" in captured.err

    def test_unsupported_operation(self, capsys):
        assert main(["matrix", "2", "--operations", "times"]) == 1
        assert "not implemented" in capsys.readouterr().err

    def test_unknown_field_is_a_usage_error(self, capsys):
        with pytest.raises(SystemExit) as exc:
            main(["vector", "2", "--field", "quaternion"])
        assert exc.value.code == 2
