"""
I/O adapters for the outage dashboard.

station_csv reads and writes station CSV files; snapshot_client talks to
a remote status store over HTTP.
"""
