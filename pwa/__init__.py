"""
PWA Directory listing package.

Modules
───────
models      — Pydantic Pwa record + listing query/response shapes
store       — SQLite-backed record source (find, list, save)
formatters  — CSV and JSON projections (day-precision dates)
renderer    — Jinja2 async renderer for feed item descriptions
feed        — RSS 2.0 feed builder (ordered, time-bounded item rendering)
dispatch    — PwaListing: format dispatch and error → status mapping
"""
