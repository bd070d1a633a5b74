# Supabase tables: expenses, expense_splits
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:

expenses:
- id: uuid (primary key, default: gen_random_uuid())
- group_id: uuid (foreign key to groups.id, not null, on delete cascade)
- description: varchar(500) (not null)
- amount: decimal(12, 2) (not null) - in the expense's own currency
- paid_by: uuid (foreign key to members.id, not null)
- expense_type: varchar(20) (not null, default: 'expense') - values: expense, transfer, income
- transfer_to: uuid (foreign key to members.id, nullable) - only set for transfers
- currency: varchar(3) (not null, default: 'EUR')
- exchange_rate: numeric(12, 6) (not null, default: 1.0) - group currency per unit of `currency`
- expense_date: date (not null, default: current_date)
- created_at: timestamptz (default: now())

expense_splits:
- id: uuid (primary key, default: gen_random_uuid())
- expense_id: uuid (foreign key to expenses.id, not null, on delete cascade)
- member_id: uuid (foreign key to members.id, not null)
- unique constraint on (expense_id, member_id)
- transfers have no splits
"""
