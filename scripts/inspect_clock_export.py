import sys
from pathlib import Path

import pandas as pd

ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT))

from tippool.diagnostics import Diagnostics  # noqa: E402
from tippool.roles import analyze_departments  # noqa: E402
from tippool.shifts import normalize  # noqa: E402
from tippool.sources import read_clock_rows  # noqa: E402

if len(sys.argv) < 2:
    print(f"usage: {Path(sys.argv[0]).name} <clock-export.csv|.xlsx> [--raw]")
    sys.exit(1)

path = Path(sys.argv[1])
if not path.exists():
    print(f"ERROR: file not found: {path}")
    sys.exit(1)

rows = read_clock_rows(path, preprocess='--raw' not in sys.argv[2:])
df = pd.DataFrame(rows)
print('COLUMNS:', list(df.columns))
print('ROWS:', len(df))
with pd.option_context('display.max_rows', 10, 'display.max_columns', 20):
    print(df.head(10).to_csv(index=False))

diagnostics = Diagnostics()
shifts = normalize(rows, diagnostics)
analysis = analyze_departments(shifts)

print('\nDepartment Classification Analysis:')
print('----------------------------------')
for entry in analysis['departments']:
    print(f"  {entry['department'] or '(blank)'}: {entry['employees']} employees (Classified as: {entry['role']})")

print('\nStaff Category Totals:')
for role, count in analysis['role_counts'].items():
    print(f"  {role}: {count} employees")

if diagnostics.events:
    print('\nData quality:')
    for code in sorted(set(diagnostics.codes())):
        print(f"  {code}: {diagnostics.count(code)}")
