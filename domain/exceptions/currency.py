from collections.abc import Sequence


class CurrencyException(Exception):
	pass


class InvalidCurrencyError(CurrencyException):
	def __init__(self, codes: Sequence[str], message: str | None = None):
		self.codes = list(codes)
		if message is None:
			if len(self.codes) == 1:
				message = f'Invalid currency code "{self.codes[0]}".'
			else:
				message = f'The following currency codes are invalid: {", ".join(self.codes)}.'
		super().__init__(message)


class RateNotFoundError(CurrencyException):
	def __init__(self, code: str):
		self.code = code
		super().__init__(f'Exchange rate for "{code}" was not found.')


class RatesUnavailableError(CurrencyException):
	def __init__(self, message: str = 'Exchange rates are currently unavailable.'):
		super().__init__(message)


class FetchError(CurrencyException):
	"""Upstream feed could not produce a snapshot."""


class UpstreamHTTPError(FetchError):
	def __init__(self, message: str, status_code: int):
		self.status_code = status_code
		super().__init__(message)


class UpstreamRequestError(FetchError):
	pass


class UpstreamTimeoutError(FetchError):
	pass


class UpstreamPayloadError(FetchError):
	pass
