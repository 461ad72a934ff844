"""Root conftest.py for test configuration.

Ensures local src/ directory takes priority over any installed packages,
and makes the shared ``samples`` helpers importable from every test module.
"""

import sys
from pathlib import Path

import pytest

# Insert local src directory at the beginning of sys.path
# This ensures that the local smalise package is used, not any installed one
_src_dir = Path(__file__).parent.parent / "src"
if str(_src_dir) not in sys.path:
    sys.path.insert(0, str(_src_dir))

_tests_dir = Path(__file__).parent
if str(_tests_dir) not in sys.path:
    sys.path.insert(1, str(_tests_dir))

# Force reimport of smalise modules if already imported
for module_name in list(sys.modules.keys()):
    if module_name.startswith("smalise"):
        del sys.modules[module_name]

from samples import HOLDER_SMALI, USER_SMALI, write_smali  # noqa: E402


@pytest.fixture
def smali_workspace(tmp_path: Path) -> Path:
    """Workspace with ``Lpkg/Holder;`` and a ``Lpkg/User;`` referencing it."""
    root = tmp_path / "ws"
    write_smali(root, "Lpkg/Holder;", HOLDER_SMALI)
    write_smali(root, "Lpkg/User;", USER_SMALI)
    return root
