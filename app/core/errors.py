"""Error kinds raised by the resolution pipeline.

Tier-local failures (``UpstreamUnavailable``, ``ExtractionFailed``,
``ExtractionTimedOut``) are caught by the resolver and only logged while a
later tier can still answer.  ``InvalidInput`` and ``NoResult`` are the two
errors a caller of ``OEmbedResolver.resolve`` can actually see.
"""


class ResolutionError(Exception):
    """Base class for every failure of the resolution pipeline."""


class InvalidInput(ResolutionError):
    """The requested URL is not a valid absolute http(s) URL."""


class UpstreamUnavailable(ResolutionError):
    """A tier's network call or response parsing failed."""


class ExtractionFailed(ResolutionError):
    """The extraction job could not be submitted or ended unsuccessfully."""


class ExtractionTimedOut(ResolutionError):
    """The extraction job did not finish within its poll budget or deadline."""


class NoResult(ResolutionError):
    """No tier produced any metadata for the URL."""
