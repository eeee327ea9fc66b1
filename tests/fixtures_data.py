"""Reusable payloads for the test suite."""

HAPPY_PATH_ADMIN = {
    "id": 7,
    "tenant_id": 1,
    "email": "admin@example.com",
    "name": "Admin",
    "role": "owner",
    "active": True,
}

MILK_GROUP = {
    "id": "milk",
    "name": "Milk",
    "type": "single",
    "options": [
        {"label": "Regular", "price_modifier": "0.00", "is_default": True},
        {"label": "Almond", "price_modifier": "3.00"},
    ],
}

EXTRAS_GROUP = {
    "id": "extras",
    "name": "Extras",
    "type": "multiple",
    "max_selections": 3,
    "options": [
        {"label": "Extra shot", "price_modifier": "1.50"},
        {"label": "Whipped cream", "price_modifier": "0.75"},
    ],
}


def flat_item(category_id, *, name="Latte", price="65.00", group_ids=(), **extra):
    payload = {
        "category_id": category_id,
        "name": name,
        "pricing": {"mode": "flat", "price": price},
        "modifier_group_ids": list(group_ids),
    }
    payload.update(extra)
    return payload


def variants_item(category_id, *, name="Frappe", variants=(("Medium", "80.00"), ("Grande", "85.00")), **extra):
    payload = {
        "category_id": category_id,
        "name": name,
        "pricing": {
            "mode": "variants",
            "variants": [{"name": variant_name, "price": price} for variant_name, price in variants],
        },
    }
    payload.update(extra)
    return payload


ONBOARDING_PAYLOAD = {
    "email": "owner@bluebean.example.com",
    "password": "s3cret-pass",
    "owner_name": "Dana Owner",
    "phone": "+1 555 0100",
    "restaurant_name": "Blue Bean Cafe",
    "business_name": "Blue Bean LLC",
    "cuisine_types": ["coffee", "bakery"],
    "address_line1": "1 Main St",
    "city": "Springfield",
    "state": "IL",
    "postal_code": "62701",
    "country": "US",
    "subdomain": "bluebean",
    "plan": "basic",
    "billing_cycle": "monthly",
}
