"""
Backend for the clicker distribution and account service.

The service authenticates users through Discord OAuth, issues bearer-token
sessions held in a key-value store, keeps a per-user activity log, serves
public profiles, and resolves download links for the latest client builds.

Quick start
-----------

.. code-block:: python

   from clicker.factory import create_web_app

   app = create_web_app()
   app.run()

Protected routes are declared with the decorators in
:mod:`clicker.auth.decorators`:

.. code-block:: python

   from clicker.auth import roles
   from clicker.auth.decorators import authorized, permitted


   @blueprint.route('/admin/dashboard', methods=['GET'])
   @authorized
   @permitted(roles.ADMIN_DASHBOARD)
   def dashboard():
       ...

"""
