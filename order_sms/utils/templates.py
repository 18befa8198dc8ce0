from typing import Any

# Placeholders: {name}, {order_no}, {total}, {status_url}
DEFAULT_TEMPLATE = (
    "ধন্যবাদ {name}! আপনার অর্ডার {order_no} নিশ্চিত হয়েছে। "
    "মোট: ৳{total}. ট্র্যাক: {status_url}"
)


def first_non_empty(*values: Any, default: str = "") -> str:
    """Return the first truthy value as a string; 0, False, None and "" are skipped."""
    for value in values:
        if not value:
            continue
        return str(value)
    return default


def render_message(
    name: str,
    order_no: str,
    total: str,
    status_url: str,
    template: str = DEFAULT_TEMPLATE,
) -> str:
    return template.format(
        name=name,
        order_no=order_no,
        total=total,
        status_url=status_url,
    )
