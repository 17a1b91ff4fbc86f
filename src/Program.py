import sys
import argparse
import logging

from plan_builder import load_client_plan
from render.renderers import RENDERER_REGISTRY
from spec_generator import run_generator


def configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format='%(levelname)s %(name)s: %(message)s',
    )


def main(argv=None):
    parser = argparse.ArgumentParser(
        description='Long-term care insurance planning projections',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Modes:
  Summary        Client overview with legacy and bankruptcy ages (default)
  Projection     Year-by-year income, expenses and balances for one person
  CashFlow       Income, expenses, withdrawals and withdrawal tax
  Policy         Premiums, cash value, death benefit and policy loans
  LTC            LTC event years with costs and benefits
  Household      Both persons combined
  Legacy         Legacy with and without insurance
  TaxEfficiency  Withdrawal tax by phase and strategy savings

Examples:
  python src/Program.py myclient
  python src/Program.py myclient --mode Projection --person 2
  python src/Program.py myclient --mode CashFlow --start-age 65 --end-age 80
  python src/Program.py --generate
        """
    )
    parser.add_argument('client_name', nargs='?', help='Name of the client (folder in input-parameters)')
    parser.add_argument('--mode', '-m',
                        choices=list(RENDERER_REGISTRY.keys()),
                        default='Summary',
                        help='Output mode (default: Summary)')
    parser.add_argument('--person', '-p', type=int, default=1,
                        help='Person to display for per-person modes (1 or 2)')
    parser.add_argument('--start-age', type=int, help='First age to display')
    parser.add_argument('--end-age', type=int, help='Last age to display')
    parser.add_argument('--generate', '-g',
                        action='store_true',
                        help='Launch interactive wizard to create a new spec.json configuration')
    parser.add_argument('--shift-policy-year', action='store_true',
                        help='Read illustration rows one policy year earlier than the default alignment')
    parser.add_argument('--verbose', '-v', action='store_true', help='Enable debug logging')

    args = parser.parse_args(argv)
    configure_logging(args.verbose)

    if args.generate:
        client_name = run_generator()
        if client_name is None:
            sys.exit(0)
        run_plan = input("Would you like to run the plan now? [Y/n]: ").strip().lower()
        if run_plan in ('', 'y', 'yes'):
            args.client_name = client_name
        else:
            sys.exit(0)

    if not args.client_name:
        parser.error("client_name is required (or use --generate to create a new configuration)")

    try:
        plan = load_client_plan(args.client_name, shift_policy_year=args.shift_policy_year or None)
    except FileNotFoundError as e:
        print(e)
        sys.exit(1)
    except ValueError as e:
        print(f"Invalid configuration: {e}")
        sys.exit(1)

    renderer = RENDERER_REGISTRY[args.mode](args.start_age, args.end_age, args.person - 1)
    try:
        renderer.render(plan)
    except ValueError as e:
        print(e)
        sys.exit(1)


if __name__ == "__main__":
    main()
