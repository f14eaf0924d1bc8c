from fleetpm.errors import ValidationError


def parse_int(value, label, error_cls=ValidationError, minimum=None, maximum=None):
    try:
        if isinstance(value, bool) or value is None or str(value).strip() == "":
            raise ValueError
        number = int(str(value).strip())
    except (TypeError, ValueError) as exc:
        raise error_cls(f"{label} must be a whole number.") from exc

    if minimum is not None and number < minimum:
        if maximum is not None:
            raise error_cls(f"{label} must be between {minimum} and {maximum}.")
        raise error_cls(f"{label} must be at least {minimum}.")
    if maximum is not None and number > maximum:
        raise error_cls(f"{label} must be between {minimum} and {maximum}.")
    return number


def parse_version(value):
    """Optional expected row version sent back by the client."""
    if value is None or value == "":
        return None
    return parse_int(value, "Version", minimum=1)


def clean_text(value, label="Value"):
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValidationError(f"{label} must be text.")
    return value.strip() or None
