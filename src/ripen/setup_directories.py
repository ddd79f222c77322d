"""
Directory setup for a bake.

Layout under the base directory:
- store/: bucket schema databases and the column tracker
- logs/: one log file per schema
"""

from pathlib import Path


def setup_output_directories(base_output_dir=None):
    """
    Set up the bake directory structure.

    Parameters
    ----------
    base_output_dir : str or Path, optional
        Base directory. If None, prompts user for input.

    Returns
    -------
    dict
        Dictionary with paths: 'base', 'store', 'logs'
    """

    if base_output_dir is None:
        print("\n" + "=" * 70)
        print("RIPEN - OUTPUT DIRECTORY SETUP")
        print("=" * 70)
        print("\nCurrent location: ", Path.cwd())
        print("\nDefault options:")
        print("  1. Current directory: ./ripen_output")
        print("  2. Home directory: ~/ripen_output")
        print("  3. Custom path")

        choice = input("\nSelect option (1/2/3) [default=1]: ").strip() or "1"

        if choice == "2":
            base_output_dir = Path.home() / "ripen_output"
        elif choice == "3":
            path_input = input("Enter custom path (use ~ for home): ").strip()
            base_output_dir = Path(path_input).expanduser()
        else:
            base_output_dir = Path.cwd() / "ripen_output"

    base_output_dir = Path(base_output_dir).expanduser().resolve()

    directories = {
        "base": base_output_dir,
        "store": base_output_dir / "store",
        "logs": base_output_dir / "logs",
    }

    for path in directories.values():
        path.mkdir(parents=True, exist_ok=True)

    print("\nOutput directories created:")
    for key, path in directories.items():
        print(f"  {key:12s}: {path}")
    print("=" * 70 + "\n")

    return directories


def get_log_path(output_dirs, schema_name):
    """Log file of one schema: logs/bake_<schema>.log"""
    log_dir = Path(output_dirs["logs"])
    log_dir.mkdir(parents=True, exist_ok=True)
    return log_dir / f"bake_{schema_name}.log"


def get_tracker_path(output_dirs, schema_name):
    """Column tracker database of one schema: store/<schema>_columns.db"""
    return Path(output_dirs["store"]) / f"{schema_name}_columns.db"
