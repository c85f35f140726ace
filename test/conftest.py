import argparse


def pytest_addoption(parser):
    parser.addoption(
        "--vcd",
        action=argparse.BooleanOptionalAction,
        default=False,
        help="dump simulation waveforms as vcd files",
    )
    parser.addoption(
        "--vcd-dir",
        default=".",
        help="directory for pipeline vcd files (default: current directory)",
    )
