"""
opsdeploy - Product deployment automation for Ops Manager appliances

A command-line interface that deploys or upgrades a product tile on a
remote Ops Manager and waits for the installation to finish.
"""
import argparse
import logging
import sys

__version__ = "0.3.0"


def main(argv=None):
    """Main CLI entry point"""
    from opsdeploy.commands import deploy

    parser = argparse.ArgumentParser(
        prog='opsdeploy',
        description='opsdeploy: Ops Manager product deployment',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog='''
Examples:
  opsdeploy deploy product.yml            # Deploy or upgrade per config
  opsdeploy deploy product.yml --force    # Redeploy regardless of state
  opsdeploy deploy product.yml -v         # Show HTTP/debug output
        '''
    )
    parser.add_argument('--version', action='version', version=f'%(prog)s {__version__}')

    subparsers = parser.add_subparsers(dest='command', help='Command to execute')

    # Deploy command
    deploy_parser = subparsers.add_parser('deploy', help='Deploy or upgrade a product')
    deploy.setup_parser(deploy_parser)

    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        sys.exit(1)

    logging.basicConfig(
        level=logging.DEBUG if getattr(args, 'verbose', False) else logging.WARNING,
        format='%(asctime)s %(name)s %(levelname)s: %(message)s'
    )

    # Dispatch to command handler
    try:
        if args.command == 'deploy':
            sys.exit(deploy.execute(args))
    except KeyboardInterrupt:
        print("\n\nInterrupted by user")
        sys.exit(130)
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        import traceback
        traceback.print_exc()
        sys.exit(1)
