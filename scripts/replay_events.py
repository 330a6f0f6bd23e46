#!/usr/bin/env python3
"""
Event Replay Tool

PURPOSE: Apply a JSON-lines file of chain logs to the entity store, in order,
stopping at the first log that cannot be applied.

Each line is one log, either with snake_case keys (contract_address,
event_name, block_number, block_timestamp, transaction_hash,
transaction_index, log_index, params) or web3 style keys (address, event,
blockNumber, ..., args).

Sale statuses and token metadata that handlers would read from the chain can
be supplied with --chain-state:
    {"sales": {"0x...": "FAIL"}, "tokens": {"0x...": {"name": "...", "symbol": "...",
                                                      "decimals": 18, "total_supply": "1000"}}}
"""

import sys
import os
import json
import argparse
import logging

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from config import Config
from database import build_session_factory
from services.event_dispatcher import EventDispatcher, last_applied_position
from utils.chain_reader import StaticChainReader
from utils.indexing_errors import IndexingHaltError

logging.basicConfig(level=Config.LOG_LEVEL, format='%(asctime)s - %(levelname)s - %(message)s')
logger = logging.getLogger(__name__)


def load_chain_state(path):
    if not path:
        return StaticChainReader()
    with open(path, encoding='utf-8') as handle:
        return StaticChainReader.from_snapshot(json.load(handle))


def iter_logs(path):
    with open(path, encoding='utf-8') as handle:
        for line_number, line in enumerate(handle, start=1):
            line = line.strip()
            if not line or line.startswith('#'):
                continue
            try:
                yield line_number, json.loads(line)
            except json.JSONDecodeError as e:
                raise IndexingHaltError(f"Line {line_number} is not valid JSON: {e}", cause=e)


def parse_sources(values):
    """--source ADDRESS=TEMPLATE pairs, merged over the configured data sources"""
    sources = dict(Config.static_data_sources())
    for value in values or []:
        address, sep, template = value.partition("=")
        if not sep:
            raise ValueError(f"Expected ADDRESS=TEMPLATE, got {value!r}")
        sources[address.strip().lower()] = template.strip()
    return sources


def replay(events_path, database_url, chain_state_path=None, static_sources=None):
    """Replay a log file. Returns the process exit code."""
    session_factory = build_session_factory(database_url, echo=Config.SQL_ECHO)
    dispatcher = EventDispatcher(
        session_factory,
        chain_reader=load_chain_state(chain_state_path),
        static_sources=static_sources,
    )

    with session_factory() as session:
        logger.info(f"📍 Resuming after position: {last_applied_position(session)}")

    line_number = 0
    try:
        for line_number, log in iter_logs(events_path):
            dispatcher.process(log)
    except IndexingHaltError as e:
        logger.error(f"❌ Replay halted at line {line_number}: {e}")
        print(f"HALTED after {dispatcher.stats.applied} applied / {dispatcher.stats.ignored} ignored logs")
        return 1

    with session_factory() as session:
        position = last_applied_position(session)

    print("=" * 60)
    print("EVENT REPLAY SUMMARY")
    print(f"Applied logs:  {dispatcher.stats.applied}")
    print(f"Ignored logs:  {dispatcher.stats.ignored}")
    print(f"Last position: {position}")
    print("=" * 60)
    return 0


def main(argv=None):
    parser = argparse.ArgumentParser(description='Replay chain logs into the entity store')
    parser.add_argument('events', help='JSON-lines file of logs, in chain order')
    parser.add_argument('--database-url', default=Config.DATABASE_URL, help='Target database URL')
    parser.add_argument('--chain-state', help='JSON file with sale statuses and token metadata')
    parser.add_argument('--source', action='append', metavar='ADDRESS=TEMPLATE',
                        help='Extra static data source (repeatable)')

    args = parser.parse_args(argv)

    Config.log_environment_config()
    return replay(args.events, args.database_url, args.chain_state, parse_sources(args.source))


if __name__ == "__main__":
    sys.exit(main())
