"""
import_engine - CSV and JSON import pipeline.

Public API:
    run_csv_import(content, owner_id, entity, replace_existing=False) → ImportReport
    import_csv_file(path, owner_id, entity, ...)                     → ImportReport
    run_dataset_import(payload, owner_id, options)                   → ImportReport
    run_ingredients_import(items, owner_id)                          → ImportReport
"""

from import_engine.errors import ImportFileError, RowError          # noqa: F401
from import_engine.importer import (                                # noqa: F401
    run_csv_import,
    import_csv_file,
    consume_upload,
)
from import_engine.dataset import (                                 # noqa: F401
    run_dataset_import,
    run_ingredients_import,
    DatasetOptions,
    load_payload,
)
from import_engine.report import ImportReport                       # noqa: F401
