import os
from storefront import create_app, db

config_name = os.environ.get('FLASK_ENV', 'production')
app = create_app(config_name)

# Tables must exist before the first request touches shopper storage
with app.app_context():
    db.create_all()

if __name__ == "__main__":
    app.run()
