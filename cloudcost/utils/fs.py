"""
Filesystem utilities for per-run scratch workspaces.
"""
import shutil
import uuid
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator


DESCRIPTOR_FILENAME = "main.tf"
USAGE_FILENAME = "infracost-usage.yml"


def new_run_id() -> str:
    """Fresh identifier for one estimate run."""
    return uuid.uuid4().hex


@contextmanager
def scratch_workspace(base_dir: str, run_id: str, provider: str) -> Iterator[Path]:
    """
    Create an isolated <base>/<run_id>/<provider> directory and remove it afterwards.

    The directory must not already exist; concurrent runs never share one.

    Args:
        base_dir: Scratch root (config.COST_SCRATCH_DIR)
        run_id: Identifier from new_run_id()
        provider: Provider key, one directory per provider

    Yields:
        Path of the created directory

    Raises:
        FileExistsError: If the directory already exists
        OSError: If the directory cannot be created
    """
    run_dir = Path(base_dir) / run_id
    workspace = run_dir / provider
    run_dir.mkdir(parents=True, exist_ok=True)
    workspace.mkdir()
    try:
        yield workspace
    finally:
        # Cleanup: remove the provider directory, then the run directory once empty
        shutil.rmtree(workspace, ignore_errors=True)
        try:
            run_dir.rmdir()
        except OSError:
            pass  # another provider of the same run still holds it


def write_descriptor(workspace: Path, hcl: str) -> Path:
    path = workspace / DESCRIPTOR_FILENAME
    path.write_text(hcl, encoding="utf-8")
    return path
