"""Everything a mapping handler may touch while applying one log"""

from dataclasses import dataclass

from services.data_source_registry import DataSourceRegistry
from utils.chain_reader import ChainReader
from utils.entity_store import EntityStore
from utils.event_envelope import EventEnvelope
from utils.event_sequencer import EventSequencer


@dataclass
class HandlerContext:
    envelope: EventEnvelope
    store: EntityStore
    sequencer: EventSequencer
    chain_reader: ChainReader
    data_sources: DataSourceRegistry

    @property
    def session(self):
        return self.store.session

    @property
    def contract_address(self) -> str:
        return self.envelope.contract_address

    def param(self, name: str):
        return self.envelope.param(name)
