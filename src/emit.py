import argparse
import sys

from amaranth.back import rtlil, verilog

from fp12_sum4 import FP12Sum4


def convert(fmt: str = "verilog", name: str = "fp12_sum4") -> str:
    dut = FP12Sum4()
    if fmt == "rtlil":
        return rtlil.convert(dut, name=name)
    if fmt == "verilog":
        return verilog.convert(dut, name=name)
    raise ValueError(f"unknown output format: {fmt}")


def main(argv=None):
    parser = argparse.ArgumentParser(description="Generate HDL for the FP12 four-operand adder")
    parser.add_argument("-f", "--format", choices=("verilog", "rtlil"), default="verilog")
    parser.add_argument("-n", "--name", default="fp12_sum4", help="top-level module name")
    parser.add_argument("-o", "--output", help="output file (default: stdout)")
    args = parser.parse_args(argv)

    text = convert(args.format, args.name)

    if args.output:
        with open(args.output, "w") as f:
            f.write(text)
    else:
        sys.stdout.write(text)


if __name__ == "__main__":
    main()
