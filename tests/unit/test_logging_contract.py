# PATH: tests/unit/test_logging_contract.py
"""
Tests for the logging contract.

Contextual fields go through extra={"context": {...}} only; no other
kwargs are passed to logger methods anywhere in the package.
"""

import ast
import json
import logging
import unittest
from pathlib import Path
from typing import Any, Dict, List

from core.logging import (
    ConsoleFormatter,
    JSONFormatter,
    clear_global_context,
    get_logger,
    log_error,
    log_price,
    set_global_context,
)

PROJECT_ROOT = Path(__file__).parent.parent.parent
PACKAGES = ["core", "chains", "dex", "scanner", "config"]


class TestLoggingContractEnforcement(unittest.TestCase):
    """AST-based tests for logging contract."""

    ALLOWED_KWARGS = {"exc_info", "extra", "stack_info", "stacklevel"}

    def _find_logger_violations(self, source_code: str) -> List[Dict[str, Any]]:
        """Find logger calls with invalid kwargs using AST."""
        violations = []
        tree = ast.parse(source_code)

        for node in ast.walk(tree):
            if not isinstance(node, ast.Call) or not isinstance(node.func, ast.Attribute):
                continue

            method_name = node.func.attr
            if method_name not in ("debug", "info", "warning", "error", "critical", "exception"):
                continue

            obj = node.func.value
            if isinstance(obj, ast.Name):
                is_logger = "log" in obj.id.lower()
            elif isinstance(obj, ast.Attribute):
                is_logger = "log" in obj.attr.lower()
            else:
                is_logger = False

            if not is_logger:
                continue

            for kw in node.keywords:
                if kw.arg and kw.arg not in self.ALLOWED_KWARGS:
                    violations.append({
                        "line": node.lineno,
                        "method": method_name,
                        "invalid_kwarg": kw.arg,
                    })

        return violations

    def test_package_has_no_invalid_kwargs(self):
        files = [
            path
            for package in PACKAGES
            for path in (PROJECT_ROOT / package).rglob("*.py")
            if "__pycache__" not in str(path)
        ]
        self.assertGreater(len(files), 0)

        msg = ""
        for filepath in files:
            for v in self._find_logger_violations(filepath.read_text(encoding="utf-8")):
                msg += f"  {filepath.name}:{v['line']}: logger.{v['method']}(..., {v['invalid_kwarg']}=...)\n"

        if msg:
            self.fail(f"Logging violations:\n{msg}")


class CapturingHandler(logging.Handler):
    def __init__(self, records_list):
        super().__init__()
        self.records = records_list

    def emit(self, record):
        self.records.append(record)


class TestContextAdapter(unittest.TestCase):
    """Context from get_logger() and extra merges into one record field."""

    def setUp(self):
        self.captured_records = []
        name = f"test_capture_{id(self)}"
        base = logging.getLogger(name)
        base.setLevel(logging.DEBUG)
        base.handlers = [CapturingHandler(self.captured_records)]
        base.propagate = False
        self.logger = get_logger(name, venue="uniswap_v2")

    def tearDown(self):
        clear_global_context()

    def test_default_and_call_context_merge(self):
        self.logger.info("Reserves read", extra={"context": {"latency_ms": 50}})

        record = self.captured_records[0]
        self.assertEqual(record.context, {"venue": "uniswap_v2", "latency_ms": 50})

    def test_log_error_helper(self):
        log_error(self.logger, "PAIR_MISMATCH", "wrong pool", pool_address="0xpool")

        record = self.captured_records[0]
        self.assertEqual(record.levelno, logging.ERROR)
        self.assertEqual(record.getMessage(), "[PAIR_MISMATCH] wrong pool")
        self.assertEqual(record.context["error_code"], "PAIR_MISMATCH")
        self.assertEqual(record.context["pool_address"], "0xpool")

    def test_log_price_is_debug(self):
        log_price(self.logger, venue="sushiswap", pair="WETH/USDC", price_a_to_b="2000", raw_ratio=2000)

        record = self.captured_records[0]
        self.assertEqual(record.levelno, logging.DEBUG)
        self.assertEqual(record.context["venue"], "sushiswap")
        self.assertEqual(record.context["raw_ratio"], 2000)

    def test_json_formatter(self):
        set_global_context(service="dexscan")
        self.logger.warning("Slow endpoint", extra={"context": {"latency_ms": 900}})

        entry = json.loads(JSONFormatter().format(self.captured_records[0]))

        self.assertEqual(entry["level"], "WARNING")
        self.assertEqual(entry["message"], "Slow endpoint")
        self.assertEqual(entry["context"]["service"], "dexscan")
        self.assertEqual(entry["context"]["latency_ms"], 900)

    def test_json_formatter_exception(self):
        try:
            raise ValueError("Test error")
        except ValueError:
            self.logger.error("Caught error", exc_info=True)

        entry = json.loads(JSONFormatter().format(self.captured_records[0]))
        self.assertIn("ValueError", entry["context"]["exception"])

    def test_console_formatter_truncates_context(self):
        self.logger.info("Scan complete", extra={"context": {"a": 1, "b": 2, "c": 3, "d": 4}})

        line = ConsoleFormatter().format(self.captured_records[0])

        self.assertIn("Scan complete", line)
        self.assertIn("(+2 more)", line)


if __name__ == "__main__":
    unittest.main()
