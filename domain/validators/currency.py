from collections.abc import Sequence

from domain.exceptions.currency import InvalidCurrencyError
from domain.models.currency import Currency, is_currency_code


def validate_currency_code(code: str) -> Currency:
	"""Turn user input such as ' usd ' into a Currency.

	Only the shape of the code is checked: any three ASCII letters are accepted,
	whether or not the upstream feed quotes that currency.
	"""
	if not isinstance(code, str):
		raise InvalidCurrencyError([str(code)])

	stripped = code.strip()
	# check before upper(): 'uß' and 'ﬀx' only become three letters once uppercased
	if len(stripped) != 3 or not stripped.isascii():
		raise InvalidCurrencyError([stripped])

	normalized = stripped.upper()
	if not is_currency_code(normalized):
		raise InvalidCurrencyError([stripped])
	return Currency(normalized)


def validate_currency_codes(codes: Sequence[str]) -> list[Currency]:
	currencies: list[Currency] = []
	invalid: list[str] = []

	for code in codes:
		try:
			currencies.append(validate_currency_code(code))
		except InvalidCurrencyError as e:
			invalid.extend(e.codes)

	if invalid:
		raise InvalidCurrencyError(invalid)
	return currencies
