import click
from flask import Flask, jsonify, request
from flask_cors import CORS
from flask_sqlalchemy import SQLAlchemy
from werkzeug.exceptions import HTTPException
from werkzeug.middleware.proxy_fix import ProxyFix

from config import config

db = SQLAlchemy()
cors = CORS()


def create_app(config_name='default'):
    """Application factory: creates and configures the Flask app."""
    app = Flask(__name__)
    app.config.from_object(config[config_name])

    if not app.config.get('SQLALCHEMY_DATABASE_URI'):
        raise RuntimeError('DATABASE_URL is not set: refusing to start without a database')

    # ── Logging ───────────────────────────────────────────────────
    from loyaltyhub.utils.logging import setup_logging
    setup_logging(app)

    # ── Extensions ────────────────────────────────────────────────
    db.init_app(app)
    cors.init_app(app, origins=app.config['CORS_ORIGINS'])

    # ── Blueprints ────────────────────────────────────────────────
    from loyaltyhub.main import main as main_blueprint
    app.register_blueprint(main_blueprint, url_prefix='/api')

    from loyaltyhub.auth import auth as auth_blueprint
    app.register_blueprint(auth_blueprint, url_prefix='/api/users')

    from loyaltyhub.businesses import businesses as businesses_blueprint
    app.register_blueprint(businesses_blueprint, url_prefix='/api/businesses')

    from loyaltyhub.customers import customers as customers_blueprint
    app.register_blueprint(customers_blueprint, url_prefix='/api')

    from loyaltyhub.programs import programs as programs_blueprint
    app.register_blueprint(programs_blueprint, url_prefix='/api')

    from loyaltyhub.rewards import rewards as rewards_blueprint
    app.register_blueprint(rewards_blueprint, url_prefix='/api')

    from loyaltyhub.transactions import transactions as transactions_blueprint
    app.register_blueprint(transactions_blueprint, url_prefix='/api')

    from loyaltyhub.redemptions import redemptions as redemptions_blueprint
    app.register_blueprint(redemptions_blueprint, url_prefix='/api')

    from loyaltyhub.qrcodes import qrcodes as qrcodes_blueprint
    app.register_blueprint(qrcodes_blueprint, url_prefix='/api')

    from loyaltyhub.settings import settings as settings_blueprint
    app.register_blueprint(settings_blueprint, url_prefix='/api')

    from loyaltyhub.comments import comments as comments_blueprint
    app.register_blueprint(comments_blueprint, url_prefix='/api')

    # ── Error Handlers ────────────────────────────────────────────
    register_error_handlers(app)

    # ── CLI Commands ──────────────────────────────────────────────
    register_commands(app)

    # ── ProxyFix (HTTPS terminated at the load balancer) ──
    app.wsgi_app = ProxyFix(app.wsgi_app, x_for=1, x_proto=1, x_host=1, x_prefix=1)

    return app


def register_error_handlers(app):
    """Every error leaves as the JSON envelope {success: false, message, ...}."""
    from loyaltyhub.errors import APIError

    @app.errorhandler(APIError)
    def api_error(e):
        db.session.rollback()
        return jsonify(e.to_dict()), e.status_code

    @app.errorhandler(HTTPException)
    def http_error(e):
        messages = {
            400: 'Invalid request',
            404: 'Endpoint not found',
            405: 'Method not allowed',
        }
        return jsonify({'success': False, 'message': messages.get(e.code, e.name)}), e.code

    @app.errorhandler(Exception)
    def internal_error(e):
        app.logger.exception("Unhandled error on %s %s", request.method, request.path)
        db.session.rollback()
        body = {'success': False, 'message': 'Internal server error'}
        if app.config.get('EXPOSE_ERROR_DETAILS'):
            body['details'] = str(e)
        return jsonify(body), 500


def register_commands(app):
    """Register custom Flask CLI commands."""

    @app.cli.command('init-db')
    def init_db():
        """Create missing tables and patch legacy PostgreSQL schemas."""
        from loyaltyhub.schema import bootstrap_schema

        actions = bootstrap_schema()
        for action in actions:
            click.echo(f'✅  {action}')
        if not actions:
            click.echo('ℹ️   Schema already up to date.')

    @app.cli.command('seed-admin')
    @click.option('--email',      prompt='Email',      help='Admin email')
    @click.option('--first-name', prompt='First name', help='Admin first name')
    @click.option('--password', prompt=True, hide_input=True,
                  confirmation_prompt=True, help='Admin password')
    def seed_admin(email, first_name, password):
        """Create a platform admin user."""
        from loyaltyhub.auth import service as auth_service
        from loyaltyhub.auth.models import User, RoleEnum

        if auth_service.get_user_by_email(email):
            click.echo(f'⚠️  User "{email}" already exists.')
            return

        admin = User(email=auth_service.normalize_email(email), first_name=first_name,
                     role=RoleEnum.admin)
        admin.set_password(password, method=app.config['PASSWORD_HASH_METHOD'])
        db.session.add(admin)
        db.session.commit()
        admins = auth_service.get_users_by_role(RoleEnum.admin)
        click.echo(f'✅  Admin user "{admin.email}" created ({len(admins)} admin(s) in total).')

    @app.cli.command('seed-demo')
    @click.option('--password', prompt=True, hide_input=True,
                  confirmation_prompt=True, help='Password for the demo accounts')
    def seed_demo(password):
        """Populate the database with a demo business, program, rewards and codes."""
        from loyaltyhub.auth import service as auth_service
        from loyaltyhub.customers.models import Customer
        from loyaltyhub.programs import service as programs_service
        from loyaltyhub.qrcodes import service as qrcodes_service
        from loyaltyhub.redemptions import service as redemptions_service
        from loyaltyhub.rewards import service as rewards_service
        from loyaltyhub.schema import bootstrap_schema

        click.echo('🌱 Seeding demo data...')
        bootstrap_schema()

        if auth_service.get_user_by_email('owner@demo-coffee.test'):
            click.echo('ℹ️   Demo data already present.')
            return

        owner = auth_service.register_user(
            'owner@demo-coffee.test', password, role='manager',
            first_name='Dana', last_name='Owner', business_name='Demo Coffee')
        business_id = owner.business_id
        member = auth_service.register_user(
            'member@demo-coffee.test', password, first_name='Sam', last_name='Member',
            business_id=business_id)
        customer = Customer.query.filter_by(user_id=member.id).one()
        click.echo('✅ Users created (owner@demo-coffee.test, member@demo-coffee.test).')

        program = programs_service.create_program(business_id, {
            'name': 'Coffee Club',
            'type': 'tiered',
            'points_per_purchase': 1,
            'tiers': [{'name': 'Bronze', 'min_points': 0},
                      {'name': 'Silver', 'min_points': 200},
                      {'name': 'Gold', 'min_points': 500}],
        })
        for name, cost in (('Free espresso', 50), ('Free latte', 120), ('Bag of beans', 400)):
            rewards_service.create_reward({'business_id': business_id, 'program_id': program.id,
                                           'name': name, 'points_required': cost})
        programs_service.issue_points(customer.id, program.id, 150)
        click.echo('✅ Program, rewards and member card created.')

        qrcodes_service.create_qr_code({'business_id': business_id, 'code_type': 'loyalty',
                                        'content': f'loyalty:{program.id}',
                                        'description': 'Counter sign'})
        codes = redemptions_service.bulk_generate_codes(business_id, 5, value_amount=25)
        click.echo(f'✅ QR code and {len(codes)} redemption codes created.')
        click.echo('✅ Demo seed complete.')

    @app.cli.command('generate-codes')
    @click.option('--business-id', required=True, help='Business the codes belong to')
    @click.option('--count', default=10, show_default=True, type=int)
    @click.option('--value-type', default='points', show_default=True,
                  type=click.Choice(['points', 'discount', 'product']))
    @click.option('--value', 'value_amount', default=0.0, type=float, help='Points or amount per code')
    @click.option('--expiry-days', default=None, type=int, help='Defaults to REDEMPTION_CODE_EXPIRY_DAYS')
    def generate_codes(business_id, count, value_type, value_amount, expiry_days):
        """Generate a batch of redemption codes and print them."""
        from loyaltyhub.errors import APIError
        from loyaltyhub.redemptions import service as redemptions_service

        try:
            codes = redemptions_service.bulk_generate_codes(
                business_id, count, value_type=value_type, value_amount=value_amount,
                expiry_days=expiry_days)
        except APIError as e:
            raise click.ClickException(e.message) from e
        for row in codes:
            click.echo(row.code)
        click.echo(f'✅  {len(codes)} codes generated.', err=True)

    @app.cli.command('expire-codes')
    def expire_codes():
        """Mark active codes past their expiry date as expired."""
        from loyaltyhub.redemptions import service as redemptions_service

        changed = redemptions_service.expire_stale_codes()
        click.echo(f'✅  {changed} code(s) expired.')
