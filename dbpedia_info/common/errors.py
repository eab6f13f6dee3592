"""
Exceptions raised by the detector and the DBpedia lookup.
"""


class TermDecodeError(ValueError):
    """A Wikipedia path segment is not valid percent-encoded UTF-8."""

    def __init__(self, segment: str, reason: str):
        self.segment = segment
        self.reason = reason
        super().__init__(f"cannot decode term {segment!r}: {reason}")


class DbpediaLookupError(LookupError):
    """The SPARQL endpoint could not answer a lookup for a term."""

    def __init__(self, term: str, reason: str):
        self.term = term
        self.reason = reason
        super().__init__(f"lookup for {term!r} failed: {reason}")
