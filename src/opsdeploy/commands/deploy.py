"""Deploy or upgrade a product on an Ops Manager appliance"""
from opsdeploy.api import OpsManagerClient
from opsdeploy.core import (
    ConsoleLogger,
    RealFileSystemService,
    SubprocessExecutor,
    SystemTimeProvider,
    SystemEnvironmentProvider,
    SystemToolLocator,
    YamlConfigLoader,
)
from opsdeploy.deploy import DeploymentEngine, OpsDeployError
from opsdeploy.utils.config import load_product_deployment_config
from opsdeploy.utils.merge import SpruceMerger


def setup_parser(parser):
    """Setup argument parser for deploy command"""
    parser.add_argument(
        'config',
        help='Product deployment config file (YAML)'
    )
    parser.add_argument(
        '--force', '-f',
        action='store_true',
        help='Deploy even if the product is installed or has a pending installation'
    )
    parser.add_argument(
        '--verbose', '-v',
        action='store_true',
        help='Show debug output'
    )


def build_engine(config, logger, filesystem=None, env_provider=None,
                 forced=False, api=None, merger=None):
    """Wire a DeploymentEngine with production dependencies.

    ``filesystem`` and ``env_provider`` are shared with the caller when given.
    ``api`` and ``merger`` may be supplied to replace the Ops Manager client
    and spruce merger.
    """
    if filesystem is None:
        filesystem = RealFileSystemService()
    if env_provider is None:
        env_provider = SystemEnvironmentProvider()
    if api is None:
        api = OpsManagerClient(config.appliance)
    if merger is None:
        merger = SpruceMerger(SubprocessExecutor(), SystemToolLocator(), env_provider)

    return DeploymentEngine(
        release=config.release,
        api=api,
        merger=merger,
        filesystem=filesystem,
        time_provider=SystemTimeProvider(),
        logger=logger,
        polling=config.polling,
        forced=forced
    )


def execute(args, api=None, merger=None):
    """Execute deploy command"""
    logger = ConsoleLogger(verbose=getattr(args, 'verbose', False))
    filesystem = RealFileSystemService()
    env_provider = SystemEnvironmentProvider()

    print("=" * 80)
    print("Product Deployment")
    print("=" * 80)

    try:
        config = load_product_deployment_config(
            args.config,
            YamlConfigLoader(filesystem),
            env_provider
        )
        logger.info(
            f"Target: {config.appliance.target}  Product: {config.release.name} "
            f"{config.release.version}"
        )

        engine = build_engine(
            config, logger,
            filesystem=filesystem,
            env_provider=env_provider,
            forced=args.force,
            api=api,
            merger=merger
        )
        try:
            result = engine.run()
        finally:
            if api is None:
                engine.api.close()
    except OpsDeployError as e:
        logger.error(str(e))
        return 1

    if result.skipped:
        print(f"\n⚠️  Nothing done for {result.name} (pending installation)")
    else:
        print(f"\n✓ {result.action.value.capitalize()} of {result.name} {result.version} complete")
    print("=" * 80)
    return 0
