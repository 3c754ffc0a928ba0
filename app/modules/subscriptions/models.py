# Supabase table: subscriptions
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:

subscriptions:
- id: uuid (primary key, default: gen_random_uuid())
- user_id: uuid (not null, references auth.users.id)
- name: text (not null)
- amount: numeric (not null)
- currency: text (not null) - ISO 4217 code, e.g. USD
- billing_cycle: text (not null) - weekly | monthly | yearly
- next_billing_date: date (not null)
- status: text (not null, default: 'active') - active | cancelled
- created_at: timestamp (default: now())
- updated_at: timestamp (nullable)

Row level security is expected to restrict every row to auth.uid() = user_id.
The gateway also filters on user_id for every read, update and delete.
"""
