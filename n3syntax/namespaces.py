"""Namespace IRIs and well-known vocabulary prefixes."""

from __future__ import annotations

RDF_NS = "http://www.w3.org/1999/02/22-rdf-syntax-ns#"
RDFS_NS = "http://www.w3.org/2000/01/rdf-schema#"
XSD_NS = "http://www.w3.org/2001/XMLSchema#"
OWL_NS = "http://www.w3.org/2002/07/owl#"

# N3 builtin vocabularies.
LOG_NS = "http://www.w3.org/2000/10/swap/log#"
MATH_NS = "http://www.w3.org/2000/10/swap/math#"
STRING_NS = "http://www.w3.org/2000/10/swap/string#"
LIST_NS = "http://www.w3.org/2000/10/swap/list#"

RDF_TYPE_IRI = f"{RDF_NS}type"
RDF_FIRST_IRI = f"{RDF_NS}first"
RDF_REST_IRI = f"{RDF_NS}rest"
RDF_NIL_IRI = f"{RDF_NS}nil"
RDF_LANG_STRING_IRI = f"{RDF_NS}langString"

XSD_STRING_IRI = f"{XSD_NS}string"
XSD_BOOLEAN_IRI = f"{XSD_NS}boolean"
XSD_INTEGER_IRI = f"{XSD_NS}integer"
XSD_DECIMAL_IRI = f"{XSD_NS}decimal"
XSD_DOUBLE_IRI = f"{XSD_NS}double"

OWL_SAME_AS_IRI = f"{OWL_NS}sameAs"
LOG_IMPLIES_IRI = f"{LOG_NS}implies"

# Prefix labels offered by the serializer when automatic prefixes are on.
KNOWN_PREFIXES = {
    RDF_NS: "rdf",
    RDFS_NS: "rdfs",
    XSD_NS: "xsd",
    OWL_NS: "owl",
    LOG_NS: "log",
    MATH_NS: "math",
    STRING_NS: "string",
    LIST_NS: "list",
    "http://xmlns.com/foaf/0.1/": "foaf",
    "http://purl.org/dc/elements/1.1/": "dc",
    "http://purl.org/dc/terms/": "dcterms",
    "http://www.w3.org/2004/02/skos/core#": "skos",
    "http://schema.org/": "schema",
    "http://www.w3.org/ns/prov#": "prov",
    "http://www.w3.org/ns/shacl#": "sh",
}

DEFAULT_PREFIXES = {
    "rdf": RDF_NS,
    "rdfs": RDFS_NS,
    "xsd": XSD_NS,
}
