# erp_otica/utils/formatters.py
"""
Máscaras e validação de documentos brasileiros.

As máscaras são progressivas: um valor parcial recebe a parte da máscara que
já cabe nele, igual ao comportamento dos campos do frontend durante a digitação.
"""
import re

_NON_DIGITS = re.compile(r"\D")

def only_digits(value: str | None) -> str:
    return _NON_DIGITS.sub("", value or "")

def format_cpf(value: str | None) -> str:
    """`52998224725` -> `529.982.247-25`."""
    digits = only_digits(value)[:11]
    if len(digits) <= 3:
        return digits
    if len(digits) <= 6:
        return f"{digits[:3]}.{digits[3:]}"
    if len(digits) <= 9:
        return f"{digits[:3]}.{digits[3:6]}.{digits[6:]}"
    return f"{digits[:3]}.{digits[3:6]}.{digits[6:9]}-{digits[9:]}"

def format_phone(value: str | None) -> str:
    """Celular `(11) 98765-4321`, fixo `(11) 3456-7890`."""
    digits = only_digits(value)[:11]
    if not digits:
        return ""
    if len(digits) <= 2:
        return f"({digits}"
    if len(digits) <= 6:
        return f"({digits[:2]}) {digits[2:]}"
    if len(digits) <= 10:
        return f"({digits[:2]}) {digits[2:6]}-{digits[6:]}"
    return f"({digits[:2]}) {digits[2:7]}-{digits[7:]}"

def format_cep(value: str | None) -> str:
    digits = only_digits(value)[:8]
    if len(digits) <= 5:
        return digits
    return f"{digits[:5]}-{digits[5:]}"

def _cpf_check_digit(digits: str) -> int:
    weight = len(digits) + 1
    total = sum(int(d) * (weight - i) for i, d in enumerate(digits))
    return (total * 10) % 11 % 10

def is_valid_cpf(value: str | None) -> bool:
    digits = only_digits(value)
    if len(digits) != 11 or digits == digits[0] * 11:
        return False
    first = _cpf_check_digit(digits[:9])
    second = _cpf_check_digit(digits[:10])
    return digits[9] == str(first) and digits[10] == str(second)

def format_brl(value: float | None) -> str:
    """1234.5 -> `R$ 1.234,50` (logs e descrições do caixa)."""
    amount = value or 0.0
    formatted = f"{abs(amount):,.2f}".replace(",", "X").replace(".", ",").replace("X", ".")
    return f"-R$ {formatted}" if amount < 0 else f"R$ {formatted}"
