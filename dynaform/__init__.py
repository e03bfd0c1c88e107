# ==============================================
# dynaform: Runtime Form Builder Core
# ==============================================
#
# Package Structure (4 Topics + Workspace):
#
# dynaform/
# ├── schema/          # Topic 1: Fields and FormTypes (dynamic schema)
# ├── normalization/   # Topic 2: Decode values, validate record payloads
# ├── storage/         # Topic 3: Store contract + Memory/MySQL/Mongo/REST
# ├── analysis/        # Topic 4: Dashboard aggregation engine
# ├── config.py        # Configuration management
# ├── errors.py        # ValidationError / StoreError / InconsistencyError
# └── workspace.py     # FormWorkspace: cached snapshot + CRUD facade
#
# ==============================================

__version__ = "0.1.0"
