"""
Family hub backend.

A FastAPI service that keeps family members, to-do lists, finances,
calendar events, a portfolio and projects as whole JSON documents in a
Yandex Disk-style object store, plus thin proxies for browsing and editing
the files themselves.
"""
