from datetime import UTC

from gpxtrace.lib.date_utils import utcnow


def test_utcnow():
    assert utcnow().tzinfo is UTC
