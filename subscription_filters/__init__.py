"""
Subscription filter service.

Stores boolean subscription filters (ALL / ANY trees of field constraints)
as SHACL shapes in a SPARQL triple store and reads them back.

Structure:
- main.py: FastAPI application
- routes/: JSON:API endpoints
- services/: constraint repository, filter builder/loader, subscribers
- mapping/: field/operator vocabulary and IRIs
- query/: SPARQL text and the RDF list codec
- database/: SPARQL store access
- validation/: request document validation
"""

__version__ = "1.0.0"
