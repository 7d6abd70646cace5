# showreel/mail/__init__.py
"""
Outbound mail: providers talk to a delivery API, ``MailService`` builds the
messages the app sends.
"""
