from app.email.mailer import ConsoleMailer, DeliveryError, Mailer, SmtpMailer, build_mailer

__all__ = ["ConsoleMailer", "DeliveryError", "Mailer", "SmtpMailer", "build_mailer"]
