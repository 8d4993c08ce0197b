"""Git helpers."""

import subprocess

from .errors import GitError


def get_git_branch_name() -> str:
    """Name of the branch checked out in the current directory.

    Raises:
        GitError: If git is missing, fails, or reports no branch.
    """
    try:
        result = subprocess.run(
            ["git", "rev-parse", "--abbrev-ref", "HEAD"],
            capture_output=True,
            text=True,
            check=True,
        )
    except FileNotFoundError as e:
        raise GitError("git is not installed") from e
    except subprocess.CalledProcessError as e:
        raise GitError(f"couldn't get branch name: {e.stderr.strip()}") from e

    name = result.stdout.strip()
    if not name:
        raise GitError("couldn't get branch name: git returned nothing")
    return name
