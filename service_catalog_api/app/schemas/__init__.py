"""
Pydantic schema definitions for API payloads.

Trees, selections and estimates live in ``tree``; users, services and
saved configurations each have their own module.  Schemas are kept
separate from the SQL in the service layer so the wire format can
evolve independently of the tables.
"""
