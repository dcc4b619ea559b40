import json
import logging
import sys
import traceback
from datetime import UTC, date, datetime
from decimal import Decimal

CONSOLE_FORMAT = '%(asctime)s | %(levelname)-8s | %(name)-20s | %(message)s'


class CustomJSONEncoder(json.JSONEncoder):
	def default(self, o):
		if isinstance(o, datetime | date):
			return o.isoformat()
		if isinstance(o, Decimal):
			return str(o)
		return super().default(o)


class JSONFormatter(logging.Formatter):
	"""One JSON object per log record."""

	def format(self, record: logging.LogRecord) -> str:
		log_entry = {
			'timestamp': datetime.now(UTC).isoformat(),
			'level': record.levelname,
			'logger': record.name,
			'message': record.getMessage(),
			'module': record.module,
			'function': record.funcName,
			'line': record.lineno,
		}

		if record.exc_info and record.exc_info[0] is not None:
			log_entry['exception'] = {
				'type': record.exc_info[0].__name__,
				'message': str(record.exc_info[1]),
				'traceback': traceback.format_exception(*record.exc_info),
			}

		return json.dumps(log_entry, ensure_ascii=False, cls=CustomJSONEncoder)


def setup_logging(level: str = 'INFO', json_logs: bool = False) -> None:
	root_logger = logging.getLogger()
	root_logger.handlers.clear()
	root_logger.setLevel(getattr(logging, level.upper(), logging.INFO))

	logging.getLogger('httpx').setLevel(logging.WARNING)

	handler = logging.StreamHandler(sys.stdout)
	if json_logs:
		handler.setFormatter(JSONFormatter())
	else:
		handler.setFormatter(logging.Formatter(CONSOLE_FORMAT, datefmt='%H:%M:%S'))
	root_logger.addHandler(handler)
