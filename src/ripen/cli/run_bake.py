"""``ripen-bake``: resolve config, lay out directories, run one bake.

``run_bake`` is importable for notebooks and tests; ``main`` adds argparse
and maps domain failures to exit code 1. scripts/run_bake.py only calls
``main``.
"""

import sys
import json
import shutil
import argparse
import importlib.util
from pathlib import Path
from typing import Optional, Dict, Any

from pydantic import ValidationError

from ripen.contracts import ContractViolation
from ripen.errors import BakeError, ProvisioningError, TimerError
from ripen.setup_directories import setup_output_directories
from ripen.pipeline.orchestrator import BakeOrchestrator
from ripen.pipeline.scheduler import BakeSummary
from ripen.schemas import resolve_config, ParamConfig, UserConfig, CLIConfig


def load_user_config_dict(config_path) -> dict:
    """Execute a Python config file and return its CONFIG dict, unvalidated.

    The first module attribute whose name starts with ``CONFIG`` and holds a
    dict wins, so ``CONFIG_SUNSET`` works as well as ``CONFIG``.

    Raises
    ------
    FileNotFoundError
        If the file does not exist.
    ValueError
        If the file defines no CONFIG dict.
    """
    path = Path(config_path)
    if not path.is_file():
        raise FileNotFoundError(f"Config not found: {path}")

    loader_spec = importlib.util.spec_from_file_location("ripen_user_config", path)
    module = importlib.util.module_from_spec(loader_spec)
    loader_spec.loader.exec_module(module)

    candidates = [getattr(module, name) for name in sorted(vars(module)) if name.startswith("CONFIG")]
    for candidate in candidates:
        if isinstance(candidate, dict):
            return candidate

    raise ValueError(f"No CONFIG dict found in {path}")


def run_bake(
    user_config_path: Optional[str],
    cli_args: Optional[Dict[str, Any]] = None,
    rerun: bool = False,
    verbose: bool = False
) -> Optional[BakeSummary]:
    """Bake one image into its bucket schema.

    1. Loads and resolves configuration (Param < User < CLI)
    2. Optionally deletes the base directory if rerun=True
    3. Sets up output directories
    4. Runs the bake orchestrator until every column is baked

    Parameters
    ----------
    user_config_path : str or None
        Path to user config file (Python file with CONFIG dict). None to
        configure from ``cli_args`` alone.
    cli_args : dict, optional
        CLI argument overrides. Keys: image_path, base_dir, schema_name,
        interval_sec, ripeness, wait_for_previous, align_second,
        log_level. All optional.
    rerun : bool, optional
        If True, delete the base directory before running.
    verbose : bool, optional
        If True, enable DEBUG logging and print full resolved config.

    Returns
    -------
    BakeSummary or None
        None if interrupted with Ctrl+C.

    Raises
    ------
    FileNotFoundError
        If user_config_path or the image does not exist.
    ValueError
        If configuration validation fails.
    BakeError, ProvisioningError, TimerError
        See ``BakeOrchestrator.start``.

    Examples
    --------
    Run with user config only::

        run_bake("config/my_config.py")

    Run with CLI overrides::

        run_bake(
            "config/my_config.py",
            cli_args={"image_path": "dawn.png", "interval_sec": 5},
        )
    """
    param_cfg = ParamConfig()  # Expert defaults

    if user_config_path is not None:
        user_cfg = UserConfig.model_validate(load_user_config_dict(user_config_path))
    else:
        user_cfg = UserConfig()

    cli_args = dict(cli_args or {})
    if verbose and "log_level" not in cli_args:
        cli_args["log_level"] = "DEBUG"

    # Filter None values
    cli_dict = {k: v for k, v in cli_args.items() if v is not None}
    cli_cfg = CLIConfig.model_validate(cli_dict) if cli_dict else CLIConfig()

    # Resolve to internal config (Param < User < CLI)
    config = resolve_config(param_cfg, user_cfg, cli_cfg)

    if rerun:
        base_dir_path = Path(config.base_dir)
        if base_dir_path.exists():
            print(f"Cleaning output directory: {base_dir_path}")
            shutil.rmtree(base_dir_path)
            print("Output directory cleaned")

    output_dirs = setup_output_directories(config.base_dir)

    print(f"\n{'='*60}")
    print("ripen bake")
    print('='*60)
    print(f"Config:   {user_config_path}")
    print(f"Image:    {config.image.path}")
    print(f"Schema:   {config.store.schema_name}")
    print(f"Ripeness: {config.bake.ripeness}")
    print(f"Interval: {config.bake.interval_sec}s")
    print(f"Output:   {config.base_dir}")
    print('='*60)

    if verbose:
        print("\nFull Internal Configuration:")
        print(json.dumps(config.model_dump(), indent=2))
        print('='*60)

    orchestrator = BakeOrchestrator(config, output_dirs)
    return orchestrator.start()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="ripen-bake",
        description="Bake an image into a bucket store, one column per tick",
    )
    parser.add_argument("config", nargs="?", help="Path to user config file")
    parser.add_argument("--image", dest="image_path", help="Image to bake")
    parser.add_argument("--base-dir", help="Output directory")
    parser.add_argument("--schema-name", help="Bucket schema name")
    parser.add_argument("--interval-sec", type=float, help="Seconds between columns")
    parser.add_argument("--ripeness", type=int, help="Tokens per bucket")
    parser.add_argument("--wait-for-previous", action=argparse.BooleanOptionalAction, default=None,
                        help="Join the previous column before dispatching the next")
    parser.add_argument("--align-second", type=int, help="Wait for this wall-clock second (0-59) before the first tick")
    parser.add_argument("--rerun", action="store_true", help="Delete output directory before running")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)

    cli_args = {
        "image_path": args.image_path,
        "base_dir": args.base_dir,
        "schema_name": args.schema_name,
        "interval_sec": args.interval_sec,
        "ripeness": args.ripeness,
        "wait_for_previous": args.wait_for_previous,
        "align_second": args.align_second,
    }

    try:
        run_bake(args.config, cli_args, rerun=args.rerun, verbose=args.verbose)
    except (BakeError, ProvisioningError, TimerError, ContractViolation) as e:
        print(f"Bake failed: {e}", file=sys.stderr)
        return 1
    except ValidationError as e:
        print(f"Invalid configuration: {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
