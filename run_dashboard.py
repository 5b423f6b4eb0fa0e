#!/usr/bin/env python3
"""Direct launcher for the Expense Tracker.

This script launches Streamlit with the expense_tracker directory as the app root,
enabling automatic page discovery from the pages/ subdirectory.
"""

import os
import subprocess
import sys
from pathlib import Path

project_root = Path(__file__).parent.resolve()
app_dir = project_root / "expense_tracker"

if __name__ == "__main__":
    # Streamlit discovers pages/ relative to the entry script
    os.chdir(app_dir)
    env = dict(os.environ)
    env["PYTHONPATH"] = os.pathsep.join(filter(None, [str(project_root), env.get("PYTHONPATH")]))
    subprocess.run([sys.executable, "-m", "streamlit", "run", "Home.py", *sys.argv[1:]], env=env)
