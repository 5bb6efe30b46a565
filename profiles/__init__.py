"""profiles/ -- Developer profiles and their experience/education sub-records.

Layer rule: profiles/ imports from core/ and auth/ only. api/ imports from
profiles/, never the reverse.
"""
