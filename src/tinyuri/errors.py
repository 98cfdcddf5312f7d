import logging
import warnings


logger = logging.getLogger(__name__)


class MalformedInputWarning(UserWarning):
    """
    Warning issued when part of a URI does not have the expected shape.

    Parsing carries on with best-effort values when this is issued.
    """
    pass


class MalformedInputError(ValueError):
    """
    Error raised in place of a MalformedInputWarning when parsing in strict mode.
    """
    pass


def malformed(message: str, strict: bool = False) -> None:
    """
    Report malformed input, either as a warning or, in strict mode, as an error.

    :param message: Description of the problem.
    :param strict: Raise a MalformedInputError instead of warning.
    """
    if strict:
        raise MalformedInputError(message)
    logger.warning(message)
    warnings.warn(message, MalformedInputWarning, stacklevel=3)
