# main.py

import sys
import argparse
from pathlib import Path

# Add the src directory to the Python path
sys.path.insert(0, str(Path(__file__).resolve().parent))

import common
import addressing as adr
import emulator as em
import script


def run_file(file_path, dump_mem=False, dump_regs=False, show_history=False,
             verbose=False, keep_going=False):
    if verbose:
        common.mode.set_trace()
        common.mode.show_mode()
    try:
        with open(file_path, 'r') as f:
            src_text = f.read()
    except FileNotFoundError:
        print(f"Error: File not found at {file_path}")
        return 1

    es = em.EmulatorState()

    print("\n--- Running Script ---")
    status = 0
    try:
        results = script.run_script(es, src_text, keep_going)
        for r in results:
            print(r.show())
            if not r.ok():
                status = 1
    except common.SimulatorError as e:
        print(f"Stopped: {e}")
        status = 1
    print("----------------------")

    # Always show a summary of registers, written memory and the stack
    print(f"\nRegisters: {es.regs.show()}  {es.adr_regs.show()}")
    em.dump_written_memory(es)
    em.dump_stack(es)

    if dump_regs:
        em.dump_registers(es)
    if dump_mem:
        em.dump_memory(es)
    if show_history:
        em.dump_history(es)
    return status

def resolve_address(mode, selection, si, di, bp, bx, disp):
    regs = {"SI": si, "DI": di, "BP": bp, "DISP": disp}
    try:
        ea = adr.resolve(mode, selection, regs, bx)
    except common.SimulatorError as e:
        print(f"Error: {e}")
        return 1
    print(ea.show())
    return 0

def main(argv=None):
    parser = argparse.ArgumentParser(description="Movsim data movement simulator")
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # Run command
    run_parser = subparsers.add_parser("run", help="Run a file of simulator commands")
    run_parser.add_argument("file", help="Path to the command file")
    run_parser.add_argument("--mem-dump", action="store_true", help="Dump all of memory after execution")
    run_parser.add_argument("--reg-dump", action="store_true", help="Dump registers after execution")
    run_parser.add_argument("--history", action="store_true", help="Show the operation history")
    run_parser.add_argument("--verbose", action="store_true", help="Enable verbose debug logging")
    run_parser.add_argument("--keep-going", action="store_true", help="Continue after a rejected command")

    # Resolve command
    resolve_parser = subparsers.add_parser("resolve", help="Compute an effective address")
    resolve_parser.add_argument("mode", choices=["indexing", "base", "index-base"])
    resolve_parser.add_argument("selection", help="SI, DI, BX, BP, or e.g. SI+BX")
    for reg in ("si", "di", "bp", "bx", "disp"):
        resolve_parser.add_argument(f"--{reg}", default="0000", help=f"value of {reg.upper()}")

    args = parser.parse_args(argv)

    if args.command == "run":
        status = run_file(args.file, args.mem_dump, args.reg_dump, args.history,
                          args.verbose, args.keep_going)
        common.mode.clear_trace()
        return status
    elif args.command == "resolve":
        return resolve_address(args.mode, args.selection, args.si, args.di, args.bp,
                               args.bx, args.disp)
    else:
        parser.print_help()
        return 0

if __name__ == "__main__":
    sys.exit(main())
