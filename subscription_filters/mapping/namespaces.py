import uuid

from rdflib import Namespace, URIRef
from rdflib.namespace import DCTERMS, PROV, RDF, SH, SKOS
from rdflib.term import _is_valid_uri

from .. import settings

EXT = Namespace("http://mu.semte.ch/vocabularies/ext/")
BESLUIT = Namespace("http://data.vlaanderen.be/ns/besluit#")
ACCOUNT = Namespace("http://mu.semte.ch/vocabularies/account/")
SCHEMA = Namespace("http://schema.org/")

GRAPH = URIRef(settings.SUBSCRIPTIONS_GRAPH)

_CONSTRAINTS = settings.RESOURCE_BASE + "constraints/"
_FILTERS = settings.RESOURCE_BASE + "filters/"
_USERS = settings.RESOURCE_BASE + "users/"
LIST_BASE = settings.RESOURCE_BASE + "list/"


def is_valid_id(resource_id: str) -> bool:
    """
    Whether `resource_id` can be the last segment of a resource IRI. Ids with
    a slash or a character N3 cannot write (space, quote, angle bracket, ...)
    never name a stored resource.
    """
    return (
        bool(resource_id)
        and "/" not in resource_id
        and _is_valid_uri(_FILTERS + resource_id)
    )


def constraint_uri(resource_id: str) -> URIRef:
    return URIRef(_CONSTRAINTS + resource_id)


def filter_uri(resource_id: str) -> URIRef:
    return URIRef(_FILTERS + resource_id)


def user_uri(resource_id: str) -> URIRef:
    return URIRef(_USERS + resource_id)


def list_uri() -> URIRef:
    """A fresh, never reused list cell IRI."""
    return URIRef(LIST_BASE + str(uuid.uuid4()))


def id_from_uri(uri: str) -> str:
    return str(uri).rstrip("/").rsplit("/", 1)[-1]


__all__ = [
    "EXT",
    "BESLUIT",
    "ACCOUNT",
    "SCHEMA",
    "DCTERMS",
    "PROV",
    "RDF",
    "SH",
    "SKOS",
    "GRAPH",
    "LIST_BASE",
    "is_valid_id",
    "constraint_uri",
    "filter_uri",
    "user_uri",
    "list_uri",
    "id_from_uri",
]
