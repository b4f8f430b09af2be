"""Tests for the resolve CLI."""

import io

from cli.__main__ import parse_args
from cli.resolve_cli import main


class TestResolveCLI:
    def test_prints_resolved_addr(self):
        out = io.StringIO()
        code = main(xff="1.1.1.1, 2.2.2.2", remote_addr="10.0.0.1:1", output=out)

        assert code == 0
        assert out.getvalue() == "2.2.2.2\n"

    def test_left_mode(self):
        out = io.StringIO()
        main(xff="1.1.1.1, 2.2.2.2", mode="left", output=out)
        assert out.getvalue() == "1.1.1.1\n"

    def test_unresolved_exit_code(self):
        out = io.StringIO()
        code = main(xff="unknown", x_real_ip="-", output=out)

        assert code == 1
        assert out.getvalue() == "unresolved\n"

    def test_verbose_lists_every_source(self):
        out = io.StringIO()
        main(
            xff="unknown, -,",
            x_real_ip="3.3.3.3",
            remote_addr="[2001:db8::1]:443",
            verbose=True,
            output=out,
        )

        assert out.getvalue().splitlines() == [
            "x-forwarded-for: -",
            "x-real-ip: 3.3.3.3",
            "remote-addr: 2001:db8::1",
            "3.3.3.3",
        ]

    def test_parse_args(self):
        args = parse_args(
            ["--xff", "1.1.1.1", "--x-real-ip", "2.2.2.2", "--mode", "LEFT"]
        )

        assert args.xff == "1.1.1.1"
        assert args.x_real_ip == "2.2.2.2"
        assert args.remote_addr is None
        assert args.mode == "LEFT"
        assert args.verbose is False
