"""A time-expiring cache and fast string hashes."""