"""
Centralized Error Logging
Writes indexing halts as JSON lines for operators
"""

import logging
import json
import os
from datetime import datetime, timezone
from typing import Optional, Dict, Any

from config import Config


class CentralizedLogger:
    """JSON-structured error log shared by the indexer entry points"""

    def __init__(self, log_dir: Optional[str] = None):
        self.logger = logging.getLogger("indexer_errors")
        self.log_dir = log_dir or Config.INDEXER_ERROR_LOG_DIR
        self._file_handler_ready = False

    def setup_file_handler(self):
        """Attach the persistent error file on first use"""
        if self._file_handler_ready:
            return
        self._file_handler_ready = True
        try:
            os.makedirs(self.log_dir, exist_ok=True)

            file_handler = logging.FileHandler(
                os.path.join(self.log_dir, "indexer_errors.log"),
                mode='a',
                encoding='utf-8'
            )
            file_handler.setFormatter(logging.Formatter(
                '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
            ))

            self.logger.addHandler(file_handler)
            self.logger.setLevel(logging.ERROR)

        except OSError as e:
            logging.getLogger(__name__).warning(f"Failed to setup file logging: {e}")

    def log_error(self,
                  error_type: str,
                  message: str,
                  context: Optional[Dict[str, Any]] = None):
        """Log error with structured data"""
        self.setup_file_handler()

        error_data = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "error_type": error_type,
            "message": message,
            "context": context or {}
        }

        self.logger.error(json.dumps(error_data, ensure_ascii=False, default=str))

    def log_indexing_halt(self, error: BaseException, envelope=None):
        """Log the failure that stopped indexing, with the offending log position"""
        context: Dict[str, Any] = {"exception": type(error).__name__}
        if envelope is not None:
            context.update({
                "contract_address": envelope.contract_address,
                "event_name": envelope.event_name,
                "block_number": envelope.block_number,
                "transaction_hash": envelope.transaction_hash,
                "transaction_index": envelope.transaction_index,
                "log_index": envelope.log_index,
            })
        self.log_error("INDEXING_HALT", str(error), context=context)

# Global instance
centralized_logger = CentralizedLogger()
