"""Domain exceptions raised by the rule and order services."""


class InvalidRule(ValueError):
    """Raised when a price or commission rule fails ingestion checks."""


class RuleConflict(Exception):
    """Raised when publishing a rule would shadow another published rule."""


class RuleNotFound(LookupError):
    pass


class OrderNotFound(LookupError):
    pass
