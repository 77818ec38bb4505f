"""
Event RSVP main application
"""
import logging
import streamlit as st

from rsvp.config import configure_logging, ensure_directories, load_config
from rsvp.services.registration_service import RegistrationService
from rsvp.services.request_handler import RequestHandler
from rsvp.ui.rsvp_form import render_rsvp_page

logger = logging.getLogger(__name__)


# Streamlit page configuration
st.set_page_config(
    page_title="Event RSVP - Please Confirm Your Attendance",
    page_icon="🎉",
    layout="centered",
    initial_sidebar_state="collapsed"
)


def initialize_session_state():
    """Set session state defaults."""
    if "edit_email" not in st.session_state:
        st.session_state.edit_email = None


def apply_custom_css():
    """Apply the page styling."""
    st.markdown("""
        <style>
        .stApp {
            background: linear-gradient(135deg, #667eea 0%, #764ba2 100%);
        }

        #MainMenu {visibility: hidden;}
        footer {visibility: hidden;}

        [data-testid="stAppViewContainer"] > .main .block-container {
            background: rgba(255, 255, 255, 0.95);
            border-radius: 20px;
            box-shadow: 0 20px 40px rgba(0, 0, 0, 0.1);
            padding: 40px;
            max-width: 560px;
        }

        .rsvp-header h1 {
            color: #333;
            font-weight: 300;
        }

        .stButton > button, .stFormSubmitButton > button {
            border-radius: 12px;
            font-weight: 600;
            border: none;
        }
        </style>
    """, unsafe_allow_html=True)


def main():
    """Application entry point."""
    config = load_config()
    configure_logging(config.log_level)

    try:
        ensure_directories(config)
        initialize_session_state()
        apply_custom_css()

        handler = RequestHandler(RegistrationService(config))
        render_rsvp_page(handler)
    except Exception:
        logger.exception("Unhandled exception during app execution")
        st.error("Something went wrong, please reload the page")

        if st.button("🔄 Reload"):
            st.session_state.clear()
            st.rerun()


if __name__ == "__main__":
    main()
