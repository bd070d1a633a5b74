# Supabase tables: groups, members
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:

groups:
- id: uuid (primary key, default: gen_random_uuid())
- name: varchar(255) (not null)
- currency: varchar(3) (not null, default: 'EUR')
- created_at: timestamptz (default: now())

members:
- id: uuid (primary key, default: gen_random_uuid())
- group_id: uuid (foreign key to groups.id, not null, on delete cascade)
- name: varchar(255) (not null)
- paypal_email: text (nullable)
- iban: text (nullable)
- created_at: timestamptz (default: now()) - members are listed in this order

There is no table for tokens or capabilities: a token is the only record of
what it grants.
"""
