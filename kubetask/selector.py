"""Resource selector evaluation.

A selector term matches when every one of its field and label constraints
holds (AND). A selector matches when at least one of its terms matches (OR).
"""

import logging

from .errors import ConfigurationError, EvaluationError
from .models import ResourceSelector, SelectorTerm
from .resources import ABSENT, Resource, stringify

logger = logging.getLogger(__name__)


def matches_term(resource: Resource, term: SelectorTerm) -> bool:
    """Check a resource against a single selector term.

    Field values are compared by their canonical string form (see
    `kubetask.resources.paths.stringify`). A missing path or label is a
    non-match, not an error.

    Raises:
        EvaluationError: If resource is None or a field path is malformed
    """
    if resource is None:
        raise EvaluationError("Can't match selector term: Nil resource found")
    for path, expected in term.match_fields.items():
        actual = resource.get_path(path)
        if actual is ABSENT or stringify(actual) != expected:
            return False
    labels = resource.labels
    for key, expected in term.match_labels.items():
        if labels.get(key) != expected:
            return False
    return True


def matches(resource: Resource, selector: ResourceSelector) -> bool:
    """Check a resource against a selector (OR across its terms).

    Raises:
        ConfigurationError: If the selector has no terms
        EvaluationError: If a term can not be evaluated
    """
    if selector is None or not selector.selector_terms:
        raise ConfigurationError("Invalid resource selector: Empty selector terms")
    for term in selector.selector_terms:
        if matches_term(resource, term):
            return True
    return False


def select(resources: list[Resource], selector: ResourceSelector) -> list[Resource]:
    """Return the resources matching selector, in input order."""
    return [r for r in resources if matches(r, selector)]
