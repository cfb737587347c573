#!/usr/bin/env python3
"""Application entry point"""
import os
import sys

def init_database():
    """Initialize the database"""
    from cr3dify import create_app, db
    app = create_app(os.getenv('FLASK_ENV') or 'development')
    with app.app_context():
        db.create_all()
        print("Database initialized!")

def create_tenant(username, email, full_name=None):
    """Create a tenant account and print its API token"""
    from cr3dify import create_app, db
    from cr3dify.models import User

    app = create_app(os.getenv('FLASK_ENV') or 'development')

    with app.app_context():
        # Create tables if they don't exist
        db.create_all()

        # Check if the account already exists
        existing = User.query.filter_by(username=username).first()
        if existing:
            print("Account {} already exists!".format(username))
            return

        user = User(
            username=username,
            email=email,
            full_name=full_name or username,
            is_active=True
        )
        token = user.rotate_api_token()
        db.session.add(user)

        try:
            db.session.commit()
            print("Tenant account created successfully!")
            print("Username: {}".format(username))
            print("API token: {}".format(token))
        except Exception as e:
            db.session.rollback()
            print("Error: {}".format(e))
            sys.exit(1)

def rotate_token(username):
    """Issue a new API token for an existing account"""
    from cr3dify import create_app, db
    from cr3dify.models import User

    app = create_app(os.getenv('FLASK_ENV') or 'development')

    with app.app_context():
        user = User.query.filter_by(username=username).first()
        if not user:
            print("Account {} not found!".format(username))
            sys.exit(1)

        token = user.rotate_api_token()
        db.session.commit()
        print("New API token for {}: {}".format(username, token))

if __name__ == '__main__':
    # Handle command-line arguments
    if len(sys.argv) > 1:
        command = sys.argv[1]
        if command == 'init-db':
            init_database()
        elif command == 'create-tenant' and len(sys.argv) >= 4:
            create_tenant(sys.argv[2], sys.argv[3], ' '.join(sys.argv[4:]) or None)
        elif command == 'rotate-token' and len(sys.argv) == 3:
            rotate_token(sys.argv[2])
        else:
            print("Unknown command: {}".format(' '.join(sys.argv[1:])))
            print("Available commands: init-db, create-tenant <username> <email> [full name], rotate-token <username>")
            sys.exit(1)
    else:
        # Run the Flask development server
        from cr3dify import create_app
        app = create_app(os.getenv('FLASK_ENV') or 'development')
        app.run(host='0.0.0.0', port=5000, debug=app.config.get('DEBUG', False))
