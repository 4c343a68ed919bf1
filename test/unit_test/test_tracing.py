"""
Test correlation id tracing
"""

import sys
import asyncio
import logging
import unittest
from pathlib import Path

# Add parent to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from token_minter.infra.tracing import (
    CorrelationContext,
    generate_correlation_id,
    get_correlation_id,
    log_with_correlation,
)


class _ListHandler(logging.Handler):
    def __init__(self):
        super().__init__()
        self.records = []

    def emit(self, record):
        self.records.append(record)


class TestCorrelationContext(unittest.TestCase):

    def test_generate_is_unique(self):
        ids = {generate_correlation_id() for _ in range(100)}
        self.assertEqual(len(ids), 100)
        self.assertTrue(all(len(cid) == 12 for cid in ids))

    def test_prefix_and_reset(self):
        self.assertIsNone(get_correlation_id())
        with CorrelationContext("mint") as cid:
            self.assertTrue(cid.startswith("mint_"))
            self.assertEqual(get_correlation_id(), cid)
        self.assertIsNone(get_correlation_id())

    def test_nested_context_reuses_outer_id(self):
        with CorrelationContext("mint") as outer:
            with CorrelationContext("ensure") as inner:
                self.assertEqual(inner, outer)
            self.assertEqual(get_correlation_id(), outer)
        self.assertIsNone(get_correlation_id())

    def test_reset_on_exception(self):
        with self.assertRaises(RuntimeError):
            with CorrelationContext("mint"):
                raise RuntimeError("boom")
        self.assertIsNone(get_correlation_id())

    def test_concurrent_tasks_are_isolated(self):
        async def worker(prefix):
            with CorrelationContext(prefix) as cid:
                await asyncio.sleep(0)
                return cid, get_correlation_id()

        async def run():
            return await asyncio.gather(worker("a"), worker("b"))

        (cid_a, seen_a), (cid_b, seen_b) = asyncio.run(run())
        self.assertEqual(cid_a, seen_a)
        self.assertEqual(cid_b, seen_b)
        self.assertNotEqual(cid_a, cid_b)


class TestLogWithCorrelation(unittest.TestCase):

    def setUp(self):
        self.logger = logging.getLogger("token_minter_tracing_test")
        self.logger.setLevel(logging.DEBUG)
        self.handler = _ListHandler()
        self.logger.addHandler(self.handler)

    def tearDown(self):
        self.logger.removeHandler(self.handler)

    def test_message_prefixed_with_id_and_operation(self):
        with CorrelationContext("mint") as cid:
            log_with_correlation(self.logger, logging.INFO, "hello", "mint", wallet="W1")

        record = self.handler.records[0]
        self.assertEqual(record.getMessage(), f"[{cid}] [mint] hello")
        self.assertEqual(record.correlation_id, cid)
        self.assertEqual(record.operation, "mint")
        self.assertEqual(record.wallet, "W1")

    def test_without_context(self):
        log_with_correlation(self.logger, logging.WARNING, "no id", "balance")
        record = self.handler.records[0]
        self.assertEqual(record.getMessage(), "[balance] no id")
        self.assertIsNone(record.correlation_id)
        self.assertEqual(record.levelno, logging.WARNING)


if __name__ == "__main__":
    unittest.main()
