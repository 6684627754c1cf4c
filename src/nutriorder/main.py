"""
Command line entry point for operating the food ordering back end.
"""
import argparse
import logging
import sys
import time
import traceback
from datetime import datetime

from nutriorder.analytics.audit import run_order_audit
from nutriorder.analytics.dashboard import restaurant_dashboard
from nutriorder.analytics.export import export_results_to_csv
from nutriorder.analytics.health import fetch_health_report
from nutriorder.auth.identity import IdentityProvider, grant_role, resolve_persona, user_roles
from nutriorder.config import Config
from nutriorder.db.engine import create_db_engine, create_session, init_db
from nutriorder.db.models import Base, utcnow
from nutriorder.db.seed import seed_demo_data
from nutriorder.errors import NutriOrderError, ValidationError
from nutriorder.orders.history import list_orders_for_month, monthly_stats
from nutriorder.orders.status import update_order_status
from nutriorder.policy.store import SecureStore

logger = logging.getLogger(__name__)


def _store_for(db_session, config, email):
    identity = IdentityProvider(db_session, config.get_session_ttl())
    user = identity.find_user(email)
    if user is None:
        raise ValidationError(f"No account for {email}")
    return SecureStore(db_session, identity.open_session(user))


def cmd_init_db(db_session, config, args):
    return {'tables': sorted(Base.metadata.tables)}


def cmd_sign_up(db_session, config, args):
    identity = IdentityProvider(db_session, config.get_session_ttl())
    metadata = {'full_name': args.name} if args.name else {}
    user = identity.sign_up(args.email, metadata)
    return {'user_id': user.id, 'email': user.email}


def cmd_grant_role(db_session, config, args):
    identity = IdentityProvider(db_session, config.get_session_ttl())
    user = identity.find_user(args.email)
    if user is None:
        raise ValidationError(f"No account for {args.email}")
    grant_role(db_session, user.id, args.role)
    persona = resolve_persona(user_roles(db_session, user.id))
    return {'user_id': user.id, 'role': args.role, 'persona': persona.value}


def cmd_seed(db_session, config, args):
    seeded = seed_demo_data(db_session, config.get_session_ttl())
    if seeded is None:
        return {'message': 'Demo data already present'}
    return {
        'restaurant_id': seeded['restaurant'].id,
        'menu_items': len(seeded['menu_items']),
        'order_id': seeded['order'].id,
    }


def cmd_health_report(db_session, config, args):
    store = _store_for(db_session, config, args.email)
    days = args.days or config.get_health_window_days()
    report = fetch_health_report(store, days=days, threshold=config.get_recommendation_threshold())
    stats = report['stats']
    return {
        'window_days': days,
        'total_orders': stats.total_orders,
        'total_calories': stats.total_calories,
        'total_spending': f"{stats.total_spending:.2f}",
        'healthy_spending': f"{stats.healthy_spending:.2f}",
        'junk_spending': f"{stats.junk_spending:.2f}",
        'healthy_percentage': f"{stats.healthy_percentage:.1f}",
        'junk_percentage': f"{stats.junk_percentage:.1f}",
        'recommendation': report['recommendation'],
    }


def cmd_order_history(db_session, config, args):
    store = _store_for(db_session, config, args.email)
    now = utcnow()
    records = list_orders_for_month(store, args.year or now.year, args.month or now.month)
    stats = monthly_stats(records)
    return {
        'total_orders': stats['total_orders'],
        'total_spent': f"{stats['total_spent']:.2f}",
        'total_calories': stats['total_calories'],
        'orders': [
            f"{r.order.id} {r.restaurant.name if r.restaurant else '-'} "
            f"{r.order.total_amount} {r.order.status}"
            for r in records
        ],
    }


def cmd_owner_dashboard(db_session, config, args):
    store = _store_for(db_session, config, args.email)
    dashboard = restaurant_dashboard(store)
    if dashboard is None:
        return {'message': 'No restaurant found for this owner'}

    result = {
        'restaurant': dashboard['restaurant'].name,
        'total_orders': dashboard['total_orders'],
        'total_revenue': f"{dashboard['total_revenue']:.2f}",
        'menu_items': dashboard['menu_items'],
        'status_breakdown': dashboard['status_breakdown'],
    }
    if args.export_csv:
        result['file_paths'] = export_results_to_csv(
            {
                'revenue_by_day': dashboard['revenue_by_day'],
                'top_selling_items': dashboard['top_selling_items'],
            },
            config.get_output_path()
        )
    return result


def cmd_set_status(db_session, config, args):
    store = _store_for(db_session, config, args.email)
    order = update_order_status(store, args.order_id, args.status)
    return {'order_id': order.id, 'status': order.status}


def cmd_audit(db_session, config, args):
    audit = run_order_audit(db_session)
    return {
        'orders_checked': audit['orders_checked'],
        'total_amount_discrepancies': len(audit['total_amount_discrepancies']),
        'orders_without_items': len(audit['orders_without_items']),
    }


COMMANDS = {
    'init-db': cmd_init_db,
    'sign-up': cmd_sign_up,
    'grant-role': cmd_grant_role,
    'seed': cmd_seed,
    'health-report': cmd_health_report,
    'order-history': cmd_order_history,
    'owner-dashboard': cmd_owner_dashboard,
    'set-status': cmd_set_status,
    'audit': cmd_audit,
}


def run_command(args, config=None, engine=None):
    """
    Run one CLI command and return a statistics dict. Failures are
    reported in the dict, never raised.
    """
    start_time = time.time()
    statistics = {
        'command': args.command,
        'start_time': datetime.now().strftime('%Y-%m-%d %H:%M:%S'),
        'status': 'failed',
    }

    db_session = None
    try:
        if config is None:
            config = Config(args.config)
        if engine is None:
            engine = create_db_engine(config)
        init_db(engine, Base)

        db_session = create_session(engine)
        statistics['result'] = COMMANDS[args.command](db_session, config, args)
        statistics['status'] = 'success'
    except NutriOrderError as e:
        logger.error(f"{args.command} failed: {str(e)}")
        statistics['error'] = str(e)
    except Exception as e:
        logger.error(f"{args.command} failed: {str(e)}")
        logger.error(traceback.format_exc())
        statistics['error'] = str(e)
    finally:
        if db_session is not None:
            db_session.close()

    statistics['duration'] = time.time() - start_time
    return statistics


def build_parser():
    parser = argparse.ArgumentParser(description='Food ordering back end')
    parser.add_argument('--config', default='config.ini', help='Path to configuration file')
    subparsers = parser.add_subparsers(dest='command', required=True)

    subparsers.add_parser('init-db', help='Create database tables')

    sign_up = subparsers.add_parser('sign-up', help='Create a principal')
    sign_up.add_argument('--email', required=True)
    sign_up.add_argument('--name', help='Display name for the profile')

    grant = subparsers.add_parser('grant-role', help='Assign a role out of band')
    grant.add_argument('--email', required=True)
    grant.add_argument('--role', required=True, choices=['customer', 'restaurant_owner'])

    subparsers.add_parser('seed', help='Load demo data')

    health = subparsers.add_parser('health-report', help='Health and spending analytics')
    health.add_argument('--email', required=True)
    health.add_argument('--days', type=int, help='Trailing window in days')

    history = subparsers.add_parser('order-history', help='Orders for a calendar month')
    history.add_argument('--email', required=True)
    history.add_argument('--year', type=int)
    history.add_argument('--month', type=int, choices=range(1, 13))

    dashboard = subparsers.add_parser('owner-dashboard', help='Restaurant owner dashboard')
    dashboard.add_argument('--email', required=True)
    dashboard.add_argument('--export-csv', action='store_true', help='Export dashboard tables to CSV files')

    status = subparsers.add_parser('set-status', help='Move an order to a new status')
    status.add_argument('--email', required=True)
    status.add_argument('--order-id', required=True)
    status.add_argument('--status', required=True)

    subparsers.add_parser('audit', help='Check stored order totals against their items')
    return parser


def main(argv=None):
    """Command line entry point."""
    args = build_parser().parse_args(argv)
    results = run_command(args)

    print(f"\n{args.command} summary:")
    print(f"Status: {results['status']}")
    print(f"Duration: {results['duration']:.2f} seconds")

    if results['status'] == 'failed' and 'error' in results:
        print(f"Error: {results['error']}")

    for key, value in results.get('result', {}).items():
        if isinstance(value, list):
            print(f"  {key}:")
            for entry in value:
                print(f"    {entry}")
        else:
            print(f"  {key}: {value}")

    return 0 if results['status'] == 'success' else 1


if __name__ == "__main__":
    sys.exit(main())
