# pg2xlsx/defaults.py
"""Default settings - no imports to avoid circular dependencies."""

settings = {
    'column_width': 10,          # display width applied to every column
    'sheet_name': 'Sheet1',
    'pgpass_file': '~/.pgpass',  # overridden by the PGPASSFILE environment variable
    'test_query': 'SELECT 1',    # used by the test-connection mode
    'logging': {
        'directory': '',         # empty means no log file, console only
        'level': 'WARNING',
        'format': '%(asctime)s [%(levelname)s] %(name)s: %(message)s',
        'timestamp_format': '%Y-%m-%d %H:%M:%S',
        'filename_format': '%Y%m%d_%H%M%S',
        'console': True,
    }
}
