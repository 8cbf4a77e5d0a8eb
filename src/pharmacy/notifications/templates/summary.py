"""Shared text fragments for order notification templates."""


def format_items(items) -> str:
    """One ``- name x qty @ price`` line per ordered item."""
    return "\n".join(
        f"- {item['name']} x {item['quantity']} @ {item['unit_price']:.2f}" for item in items
    )
