"""ABOUTME: Tests for the pytest command assembled by run_tests.py
ABOUTME: Checks suite selection, coverage targets and report paths"""

import argparse
from typing import Any

from run_tests import COVERAGE_DIR, PROJECT_MODULES, TEST_REPORT, build_pytest_command


def make_args(**overrides: Any) -> argparse.Namespace:
    options = {
        'unit': False,
        'integration': False,
        'coverage': False,
        'html': False,
        'verbose': False,
        'parallel': None,
        'pattern': None,
    }
    options.update(overrides)
    return argparse.Namespace(**options)


class TestBuildPytestCommand:
    """Test pytest argument assembly"""

    def test_default_runs_whole_suite(self) -> None:
        """Test no options run every test without extra flags"""
        cmd = build_pytest_command(make_args())
        assert cmd[1:] == ['-m', 'pytest', 'tests']

    def test_suite_selection(self) -> None:
        """Test unit and integration suites select their directories"""
        assert 'tests/unit' in build_pytest_command(make_args(unit=True))
        integration = build_pytest_command(make_args(integration=True))
        assert 'tests/integration' in integration
        assert integration[-2:] == ['-m', 'integration']

    def test_coverage_targets_project_modules(self) -> None:
        """Test coverage measures each module and writes the advertised HTML report"""
        cmd = build_pytest_command(make_args(coverage=True))

        for module in PROJECT_MODULES:
            assert f'--cov={module}' in cmd
        assert '--cov=.' not in cmd
        assert f'--cov-report=html:{COVERAGE_DIR}' in cmd

    def test_html_report_and_parallel(self) -> None:
        """Test report, worker and pattern options are passed through"""
        cmd = build_pytest_command(make_args(html=True, parallel=4, pattern='cache'))

        assert f'--html={TEST_REPORT}' in cmd
        assert cmd[cmd.index('-n') + 1] == '4'
        assert cmd[cmd.index('-k') + 1] == 'cache'
