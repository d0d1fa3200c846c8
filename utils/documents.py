import re

_NON_DIGITS = re.compile(r"\D")

CPF_LENGTH = 11
CNPJ_LENGTH = 14


def only_digits(value: str) -> str:
    """Strip the usual CPF/CNPJ punctuation (``123.456.789-09`` -> ``12345678909``)."""
    return _NON_DIGITS.sub("", value or "")


def normalize_cpf(value: str) -> str:
    digits = only_digits(value)
    if len(digits) != CPF_LENGTH:
        raise ValueError("CPF deve conter 11 dígitos")
    return digits


def normalize_cpf_or_cnpj(value: str) -> str:
    digits = only_digits(value)
    if len(digits) not in (CPF_LENGTH, CNPJ_LENGTH):
        raise ValueError("CNPJ/CPF deve conter 11 ou 14 dígitos")
    return digits
