import os

from dotenv import load_dotenv

load_dotenv()

# ---- Store -----------------------------------------------------------------

STORE_BACKEND = os.getenv("STORE_BACKEND", "http").lower()  # "http" | "memory"
SPARQL_ENDPOINT = os.getenv("SPARQL_ENDPOINT", "http://database:8890/sparql")
SPARQL_UPDATE_ENDPOINT = os.getenv("SPARQL_UPDATE_ENDPOINT", SPARQL_ENDPOINT)
SPARQL_TIMEOUT_SECONDS = float(os.getenv("SPARQL_TIMEOUT_SECONDS", "30"))
# mu-auth deployments: bypass access rights, the service writes its own graph
SPARQL_SUDO = os.getenv("SPARQL_SUDO", "true").lower() == "true"

# ---- Graph layout ----------------------------------------------------------

SUBSCRIPTIONS_GRAPH = os.getenv(
    "SUBSCRIPTIONS_GRAPH", "http://lokaalbeslist.be/graphs/subscriptions"
)
RESOURCE_BASE = os.getenv("RESOURCE_BASE", "http://lokaalbeslist.be/subscriptions/")
if not RESOURCE_BASE.endswith("/"):
    RESOURCE_BASE += "/"

# ---- Notifications ---------------------------------------------------------

NOTIFY_URL = os.getenv("NOTIFY_URL", "")  # empty -> log only
NOTIFY_TIMEOUT_SECONDS = float(os.getenv("NOTIFY_TIMEOUT_SECONDS", "5"))

# ---- HTTP / logging --------------------------------------------------------

CORS_ALLOW_ORIGINS = [
    o.strip() for o in os.getenv("CORS_ALLOW_ORIGINS", "").split(",") if o.strip()
]
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
