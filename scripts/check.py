#!/usr/bin/env python3
"""
Проверка проекта graphql-request-pipeline перед коммитом.

Шаги: black, ruff, mypy (кроме --fast), pytest (кроме --skip-tests).

Usage:
    python scripts/check.py
    python scripts/check.py --fast  # Без mypy
    python scripts/check.py --fix   # black и ruff с исправлениями
"""

import argparse
import subprocess
import sys
from pathlib import Path
from typing import List, Tuple

GREEN = '\033[92m'
RED = '\033[91m'
YELLOW = '\033[93m'
BOLD = '\033[1m'
END = '\033[0m'


def run_command(command: List[str], description: str) -> bool:
    """Запустить команду; отсутствующий инструмент не считается ошибкой."""
    print(f"\n{BOLD}▶ {description}{END}")

    try:
        result = subprocess.run(command, capture_output=True, text=True, encoding='utf-8', errors='ignore')
    except FileNotFoundError:
        print(f"{YELLOW}⚠ Command not found: {command[0]} - SKIPPED{END}")
        return True

    if result.returncode == 0:
        print(f"{GREEN}✓ {description} - OK{END}")
        summary = [line for line in result.stdout.splitlines() if " passed" in line or " failed" in line]
        if summary:
            print(summary[-1])
        return True

    print(f"{RED}✗ {description} - FAILED{END}")
    print((result.stdout + result.stderr)[-2000:])
    return False


def build_steps(args: argparse.Namespace, src_dir: Path, tests_dir: Path) -> List[Tuple[str, List[str]]]:
    paths = [str(src_dir), str(tests_dir)]
    steps = [
        ("Black", ["black", *paths] if args.fix else ["black", "--check", *paths]),
        ("Ruff", ["ruff", "check", *paths, *(["--fix"] if args.fix else [])]),
    ]
    if not args.fast:
        steps.append(("Mypy", ["mypy", str(src_dir / "request_pipeline"), "--ignore-missing-imports"]))
    if not args.skip_tests:
        steps.append(("Pytest", ["pytest", "-q", "--cov=request_pipeline", "--cov-report=term-missing"]))
    return steps


def main() -> int:
    parser = argparse.ArgumentParser(description="Проверка качества кода")
    parser.add_argument("--fast", action="store_true", help="Без mypy")
    parser.add_argument("--fix", action="store_true", help="Автоматические исправления")
    parser.add_argument("--skip-tests", action="store_true", help="Только линтеры")
    args = parser.parse_args()

    root_dir = Path(__file__).parent.parent
    results = [
        (name, run_command(command, name))
        for name, command in build_steps(args, root_dir / "src", root_dir / "tests")
    ]

    print(f"\n{BOLD}{'=' * 60}\n  ИТОГОВЫЙ ОТЧЁТ\n{'=' * 60}{END}")
    for name, success in results:
        status = f"{GREEN}✓ PASSED{END}" if success else f"{RED}✗ FAILED{END}"
        print(f"{status:20} {name}")

    return 0 if all(success for _, success in results) else 1


if __name__ == "__main__":
    sys.exit(main())
