"""
Validações e sanitização de entrada compartilhadas pelos serializers.
"""

import re
from decimal import Decimal, InvalidOperation
from typing import Optional

from rest_framework import serializers


MAX_PRICE = Decimal("9999.99")
MAX_DURATION_MINUTES = 8 * 60


def sanitize_text_input(value: str, max_length: Optional[int] = None) -> str:
    """Sanitiza entrada de texto."""
    if not value:
        return ""

    # Remover caracteres de controle (exceto quebras de linha)
    sanitized = re.sub(r"[\x00-\x09\x0b-\x1f\x7f-\x9f]", "", str(value))
    sanitized = re.sub(r"[ \t]+", " ", sanitized).strip()

    if max_length and len(sanitized) > max_length:
        sanitized = sanitized[:max_length].strip()

    return sanitized


def validate_price(value) -> Decimal:
    try:
        price = Decimal(str(value))
    except (InvalidOperation, TypeError, ValueError):
        raise serializers.ValidationError("Preço inválido.")
    if price < 0:
        raise serializers.ValidationError("Preço não pode ser negativo.")
    if price > MAX_PRICE:
        raise serializers.ValidationError(f"Preço máximo é {MAX_PRICE}€.")
    return price


def validate_duration(value) -> int:
    if value is None or int(value) < 1:
        raise serializers.ValidationError("Duração deve ser de pelo menos 1 minuto.")
    if int(value) > MAX_DURATION_MINUTES:
        raise serializers.ValidationError(
            f"Duração máxima é {MAX_DURATION_MINUTES} minutos."
        )
    return int(value)
