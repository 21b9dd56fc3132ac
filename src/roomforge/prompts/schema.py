"""Static schema description used when schema retrieval returns nothing."""

STATIC_SCHEMA = """
DATABASE SCHEMA (PostgreSQL):

MAIN TABLES:
- users (id, email, phone, first_name, last_name, role: tenant|landlord, created_at, updated_at)
- buildings (id, slug, owner_id -> users.id, name, address_line_1, address_line_2, ward_id, district_id, province_id, latitude, longitude, is_active, created_at, updated_at)
- rooms (id, slug, building_id -> buildings.id, floor_number, name, description, room_type: boarding_house|dormitory|sleepbox|apartment|whole_house, area_sqm, max_occupancy, total_rooms, view_count, is_active, created_at, updated_at)
- room_instances (id, room_id -> rooms.id, room_number, status: available|occupied|maintenance|reserved|unavailable, is_active, created_at, updated_at)
- rentals (id, room_instance_id -> room_instances.id, tenant_id -> users.id, owner_id -> users.id, contract_start_date, contract_end_date, monthly_rent, deposit_paid, status: active|terminated|expired|pending_renewal, created_at, updated_at)
- bills (id, rental_id -> rentals.id, room_instance_id -> room_instances.id, billing_period, billing_month, billing_year, period_start, period_end, subtotal, discount_amount, tax_amount, total_amount, status: draft|pending|paid|overdue|cancelled, due_date, created_at, updated_at)
- bill_items (id, bill_id -> bills.id, item_type, item_name, quantity, unit_price, amount, currency, created_at)
- payments (id, rental_id -> rentals.id, bill_id -> bills.id, payer_id -> users.id, payment_type: rent|deposit|utility|fee|refund, amount, currency, payment_method: bank_transfer|cash|e_wallet|card, payment_status: pending|completed|failed|refunded, payment_date, created_at, updated_at)
- room_bookings (id, room_id -> rooms.id, tenant_id -> users.id, move_in_date, move_out_date, rental_months, monthly_rent, deposit_amount, status: pending|accepted|rejected|expired|cancelled|awaiting_confirmation, created_at, updated_at)
- room_requests (id, slug, requester_id -> users.id, title, description, preferred_district_id, preferred_province_id, min_budget, max_budget, preferred_room_type, occupancy, move_in_date, status, view_count, created_at, updated_at)
- notifications (id, user_id -> users.id, notification_type, title, message, is_read, created_at)

ROOM DETAILS:
- room_images (id, room_id -> rooms.id, image_url, alt_text, sort_order, is_primary, created_at)
- room_amenities (id, room_id -> rooms.id, amenity_id -> amenities.id, custom_value, notes, created_at)
- room_costs (id, room_id -> rooms.id, cost_type_template_id -> cost_type_templates.id, cost_type: fixed|per_person|metered, fixed_amount, per_person_amount, unit_price, unit, billing_cycle, included_in_rent, created_at, updated_at)
- room_pricing (id, room_id -> rooms.id, base_price_monthly, currency, deposit_amount, deposit_months, utility_included, utility_cost_monthly, minimum_stay_months, price_negotiable, created_at, updated_at)
- room_rules (id, room_id -> rooms.id, rule_template_id -> room_rule_templates.id, custom_value, is_enforced, notes, created_at)

REFERENCE TABLES:
- amenities (id, name, name_en, category, is_active, sort_order)
- cost_type_templates (id, name, name_en, category, default_unit, is_active)
- room_rule_templates (id, name, name_en, category, rule_type: allowed|forbidden|required|conditional, is_active)

LOCATION TABLES:
- provinces (id, province_code, province_name, province_name_en)
- districts (id, district_code, district_name, district_name_en, province_id -> provinces.id)
- wards (id, ward_code, ward_name, ward_name_en, district_id -> districts.id)

IMPORTANT NOTES:
- rooms has NO price column; use room_pricing.base_price_monthly
- room ownership is rooms.building_id -> buildings.owner_id, never rentals.owner_id
- all column names are snake_case
- always include LIMIT
"""
