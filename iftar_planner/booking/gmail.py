from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
import base64
from googleapiclient.discovery import build
from google.oauth2 import service_account
import logging

logger = logging.getLogger(__name__)


class GmailIntegration:
    """
    Sends the booking notification emails through the Gmail API, impersonating the mailbox of the sender address.

    May raise googleapiclient.errors.HttpError from send_email if Gmail rejects the message.
    """

    SCOPES = ['https://www.googleapis.com/auth/gmail.send']

    def __init__(self, service_account_file: str, sender: str, mailbox: str):
        self._service_account_file = service_account_file
        self._sender = sender
        self._mailbox = mailbox
        self.service = self._authorize()

    @property
    def get_sender(self):
        return self._sender

    def create_message(self, to, subject, html_body):
        message = MIMEMultipart('alternative')
        message['to'] = ', '.join(to)
        message['from'] = self._sender
        message['subject'] = subject

        message.attach(MIMEText(html_body, 'html'))

        # Encode to base64 for Gmail API
        raw = base64.urlsafe_b64encode(message.as_bytes()).decode()
        return {'raw': raw}

    def send_email(self, to: list[str], subject: str, html_body: str) -> dict:
        message = self.create_message(to, subject, html_body)
        sent_message = self.service.users().messages().send(userId='me', body=message).execute()
        logger.info(f"Gmail message sent: {sent_message.get('id')}")
        return sent_message

    def _authorize(self):
        creds = service_account.Credentials.from_service_account_file(
                self._service_account_file,
                scopes=self.SCOPES,
                subject=self._mailbox  # Impersonating the notification mailbox
            )
        return build("gmail", "v1", credentials=creds)
