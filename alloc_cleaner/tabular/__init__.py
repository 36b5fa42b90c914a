"""CSV / XLSX ingestion into plain row dicts."""
