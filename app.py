import argparse
import asyncio
import sys

from config_manager import get_config
from core.exceptions import AdminConsoleError
from core.logging_config import set_log_level, setup_logging_from_config
from listing_selectors import select_listing_view, select_showing_text
from query.state.models import SortField, SortOrder, SortSpec
from session_manager import AdminSession, create_admin_session

SORT_CHOICES = {
    'price-asc': SortSpec(SortField.PRICE, SortOrder.ASC),
    'price-desc': SortSpec(SortField.PRICE, SortOrder.DESC),
}


def render_listing(session: AdminSession) -> str:
    """Plain-text rendering of the product listing"""
    view = select_listing_view(session)
    lines = []

    for label, flags in (('products', view.products_flags),
                         ('brands', view.brands_flags),
                         ('categories', view.categories_flags)):
        if flags.error:
            lines.append(f"! {label} could not be loaded: {flags.error}")

    for product in view.products:
        marker = ' [deleted]' if product.is_deleted else ''
        lines.append(f"{product.id:<26} {product.title[:40]:<40} {product.brand.name[:16]:<16} "
                     f"{product.price:>10.2f}{marker}")

    lines.append('')
    lines.append(select_showing_text(session))
    lines.append(f"Page {view.page.page_number} of {max(view.page_count, 1)}")
    return '\n'.join(lines)


async def run(args) -> int:
    config = get_config(args.config)
    session = create_admin_session(config)

    async with session:
        controller = session.controller
        for brand_id in args.brand or []:
            controller.toggle_brand(brand_id)
        for category_id in args.category or []:
            controller.toggle_category(category_id)
        if args.quick_filter:
            session.quick_filter(args.quick_filter)
        if args.sort:
            controller.set_sort(SORT_CHOICES[args.sort])
        if args.page:
            controller.set_page(args.page)
        await controller.settle()

        for product_id in args.delete or []:
            result = await session.soft_delete(product_id)
            if not result.ok:
                print(f"Delete of {product_id} failed: {result.error}", file=sys.stderr)
        for product_id in args.restore or []:
            result = await session.restore(product_id)
            if not result.ok:
                print(f"Restore of {product_id} failed: {result.error}", file=sys.stderr)

        print(render_listing(session))
    return 0


if __name__ == '__main__':
    parser = argparse.ArgumentParser(description='Catalog Admin Console - product listing')
    parser.add_argument('--config', default=None, help='Path to config.toml')
    parser.add_argument('--brand', action='append', help='Brand id to filter by (repeatable)')
    parser.add_argument('--category', action='append', help='Category id to filter by (repeatable)')
    parser.add_argument('--quick-filter', help='Show a single category by name, e.g. "Backpacks"')
    parser.add_argument('--sort', choices=sorted(SORT_CHOICES), help='Sort order')
    parser.add_argument('--page', type=int, help='Page number (1-based)')
    parser.add_argument('--delete', action='append', help='Soft-delete a product id (repeatable)')
    parser.add_argument('--restore', action='append', help='Restore a product id (repeatable)')
    parser.add_argument('--verbose', action='store_true', help='Log at DEBUG level')
    args = parser.parse_args()

    setup_logging_from_config(get_config(args.config).logging)
    if args.verbose:
        set_log_level('DEBUG')

    try:
        sys.exit(asyncio.run(run(args)))
    except AdminConsoleError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)
