# src/hms_analytics/fetch/queries.py
"""
SQL used by the DuckDB record fetcher.

The table name is interpolated (validated identifier); every value is bound
through $-parameters. Period bounds are half-open: [$start, $end).
"""

SQL_RECORDS_FOR_SOURCE = """
SELECT
  id,
  timestamp,
  status,
  category,
  value,
  ended_at,
  subject_id,
  tags
FROM {table}
WHERE source = $source
  AND timestamp >= $start
  AND timestamp <  $end
ORDER BY timestamp, id;
"""

SQL_SOURCES = """
SELECT source, COUNT(*) AS records
FROM {table}
GROUP BY source
ORDER BY source;
"""
