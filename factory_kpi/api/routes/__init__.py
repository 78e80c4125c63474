"""
API route modules.

This package contains subrouters for:
- Auth and profile: login, logout, current user, self-service profile
- Users: user list, bulk import, user and department administration
- KPI: department KPIs, action items, activity log
- Stations: production stations, station data entries, station KPIs
- Claims: customer claims and the non-conformity feed
- Dashboard: persisted layout, preferences, calendars
- Imports and Reports: spreadsheet uploads and CSV/Excel/PDF exports

Routers are included from factory_kpi.api.main (under the /api prefix).
"""
