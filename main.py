"""
Trade Journal Application Entry Point.

Imports broker trade-history exports (CSV/XLSX), lets the user review the
parsed trades before they are merged into the persistent journal, and
reports performance analytics over the stored trades.

The import step never writes anything by itself: a parsed batch is only
stored after the user confirms it and supplies the initial account balance.
"""
import os
import sys
import time
from typing import Optional

import pandas as pd

# --- Custom Module Imports ---
# imp: Parses broker exports into normalised trades.
# TradeJournal: Persistent trade collection.
# TradeAnalyser: KPIs and plots over stored trades.
from trade_journal import importer as imp
from trade_journal.config import DEFAULT_STORE_PATH, RESULTS_DIR
from trade_journal.errors import TradeImportError
from trade_journal.journal import TradeJournal
from trade_journal.settings import load_settings, save_settings, currency_symbol
from trade_journal.storage import FileStore
from trade_journal.trade_analytics import TradeAnalyser

# --- Configuration Constants ---
# Directory scanned for exports to import.
DATA_DIR = r'data'

# Number of trades shown in the review preview.
PREVIEW_ROWS = 20


class TradeJournalApp:
    """
    Controls the import / review / analyse workflow.

    Holds the journal (backed by the on-disk store) and the outcome of the
    latest import until it is confirmed or discarded.
    """
    def __init__(self, store_path: str = DEFAULT_STORE_PATH) -> None:
        self.store = FileStore(store_path)
        self.journal = TradeJournal(self.store)
        self.settings = load_settings(self.store)
        self.last_outcome = None

    def menu(self) -> None:
        """
        Displays the main menu and routes user input to the workflow steps.
        """
        while True:
            self._print_header()
            print(" 1. Import Trade File")
            print(" 2. Review & Confirm Import")
            print(" 3. Analyse and Plot Results")
            print()
            print(" 4. Preferences")
            print(" 5. Reset Journal")
            print()
            print(" Q. Quit")
            print("-" * 60)

            flags = []
            flags.append(f"JOURNAL: {len(self.journal.trades)} trades")
            flags.append(f"PENDING: {len(self.journal.pending)}" if self.journal.pending else "PENDING: --")
            print(f" STATUS: {' | '.join(flags)}")
            print("-" * 60)

            choice = input(" >> Select Option: ").upper().strip()

            if choice == '1':
                self.step_import_file()
            elif choice == '2':
                self.step_review_import()
            elif choice == '3':
                self.step_analyse()
            elif choice == '4':
                self.step_preferences()
            elif choice == '5':
                self.step_reset()
            elif choice == 'Q':
                sys.exit()
            else:
                print(" [!] Invalid selection.")
                time.sleep(0.5)

    # =========================================================================
    # STEP 1: IMPORT
    # =========================================================================
    def step_import_file(self, path: Optional[str] = None) -> bool:
        """
        Parses a broker export and stages its trades for review.

        A new import replaces any batch still waiting for confirmation.

        Returns:
            bool: True if trades were staged.
        """
        self._print_section_header("STEP 1: IMPORT TRADE FILE")

        if path is None:
            path = self._select_file()
        if not path:
            return False

        if not os.path.exists(path):
            print(f"\n [!] Error: File not found at {path}")
            time.sleep(0.5)
            return False

        timezone = self.settings['preferences'].get('timezone', 'UTC')

        try:
            outcome = imp.load_trade_file(path, timezone=timezone, verbose=True)
        except TradeImportError as e:
            print(f" [!] {e.title}: {e}")
            time.sleep(0.5)
            return False
        except OSError as e:
            print(f" [!] Error reading file: {e}")
            time.sleep(0.5)
            return False

        self.last_outcome = outcome
        self.journal.set_pending(outcome.trades)

        print(f" [+] {len(outcome.trades)} trades ready for review.")
        if outcome.dropped_rows:
            print(f"     - {outcome.dropped_rows} rows skipped (incomplete or invalid).")
        time.sleep(0.5)
        return True

    # =========================================================================
    # STEP 2: REVIEW & CONFIRM
    # =========================================================================
    def step_review_import(self) -> None:
        """Shows the pending trades and merges them after confirmation."""
        self._print_section_header("STEP 2: REVIEW & IMPORT")

        if not self.journal.pending:
            print(" [!] There are no trades to review. Please import a file first.")
            time.sleep(0.5)
            return

        if self.last_outcome is not None:
            outcome = self.last_outcome
            print(f" Source: {outcome.file_name} (header on row {outcome.header_row + 1}, "
                  f"{outcome.dropped_rows} of {outcome.total_rows} rows skipped)\n")

        symbol = currency_symbol(self.settings['preferences'].get('currency'))
        preview = pd.DataFrame([t.to_record() for t in self.journal.pending[:PREVIEW_ROWS]])
        preview = preview[['date', 'symbol', 'side', 'size', 'entry', 'exit', 'pl']]
        print(preview.to_string(index=False, formatters={
            'size': '{:.2f}'.format,
            'entry': '{:.4f}'.format,
            'exit': '{:.4f}'.format,
            'pl': lambda v: f"{symbol}{v:,.2f}"
        }))
        print(f"\n     - {len(self.journal.pending)} records to be imported.")

        answer = input(" >> Import now? [y/N]: ").strip().lower()
        if answer != 'y':
            self.journal.clear_pending()
            self.last_outcome = None
            print(" [!] Import cancelled.")
            time.sleep(0.5)
            return

        default_balance = self.journal.initial_balance
        raw_balance = input(f" >> Initial balance [Default: {default_balance:,.2f}]: ").strip()

        try:
            added = self.journal.confirm_import(raw_balance or default_balance)
        except ValueError as e:
            print(f" [!] Invalid Initial Balance: {e}")
            time.sleep(0.5)
            return

        self.last_outcome = None
        if added == 0:
            print(" [!] No new trades to import. All trades from the file already exist in your journal.")
        else:
            print(f" [+] Import successful. {added} new trades have been added to your journal.")
        time.sleep(0.5)

    # =========================================================================
    # STEP 3: ANALYSIS & VISUALIZATION
    # =========================================================================
    def step_analyse(self, show_plots: bool = True) -> None:
        """
        Prints KPIs and breakdowns and saves the equity and weekday plots.
        """
        self._print_section_header("STEP 3: ANALYSIS & VISUALISATION")

        if not self.journal.trades:
            print(" [!] Journal is empty. Import trades first.")
            time.sleep(0.5)
            return

        analyser = TradeAnalyser(self.journal.to_frame(), self.journal.initial_balance)
        symbol = currency_symbol(self.settings['preferences'].get('currency'))

        kpis = analyser.get_kpis()
        print(f"     - Net P/L:         {symbol}{kpis['Net_PL']:,.2f}")
        print(f"     - Win Rate:        {kpis['Win_Rate']:.1f}%")
        print(f"     - Avg R/R:         {kpis['Avg_RR']:.2f}")
        print(f"     - Max Equity:      {symbol}{kpis['Max_Equity']:,.2f}")
        print(f"     - Current Balance: {symbol}{kpis['Current_Balance']:,.2f}")

        print("\nWeekday Breakdown:")
        print(analyser.weekday_metrics().round(2))
        print("\nSymbol Performance:")
        print(analyser.symbol_performance().round(2).to_string(index=False))

        os.makedirs(RESULTS_DIR, exist_ok=True)
        analyser.symbol_performance().to_csv(os.path.join(RESULTS_DIR, 'symbol_performance.csv'), index=False)
        analyser.plot_equity_curve(save_path=os.path.join(RESULTS_DIR, '1_equity_curve.png'), show=show_plots)
        analyser.plot_pl_by_weekday(save_path=os.path.join(RESULTS_DIR, '2_pl_by_weekday.png'), show=show_plots)

        print(f"\n [+] All analysis files saved to: {RESULTS_DIR}")
        time.sleep(0.5)

    # =========================================================================
    # SETTINGS & RESET
    # =========================================================================
    def step_preferences(self) -> None:
        """Edits display currency and the timezone assumed for imported timestamps."""
        self._print_section_header("PREFERENCES")
        prefs = self.settings['preferences']

        currency = input(f" >> Currency code [Default: {prefs['currency']}]: ").strip().lower()
        timezone = input(f" >> Source timezone [Default: {prefs['timezone']}]: ").strip()

        self.settings = save_settings(self.store, {'preferences': {
            'currency': currency or prefs['currency'],
            'timezone': timezone or prefs['timezone']
        }})
        print(" [+] Preferences saved.")
        time.sleep(0.5)

    def step_reset(self) -> None:
        """Deletes every stored trade after confirmation."""
        answer = input(" >> This deletes all stored trades. Continue? [y/N]: ").strip().lower()
        if answer == 'y':
            self.journal.reset_all()
            self.last_outcome = None
            print(" [+] Journal reset.")
            time.sleep(0.5)

    # =========================================================================
    # UTILITY FUNCTIONS
    # =========================================================================
    def _select_file(self) -> Optional[str]:
        """
        Lists importable files in DATA_DIR (newest first) and asks for a choice.
        Falls back to manual path entry.
        """
        files = []
        if os.path.exists(DATA_DIR):
            files = [f for f in os.listdir(DATA_DIR) if f.lower().endswith(('.csv', '.xlsx'))]
            files.sort(key=lambda x: os.path.getmtime(os.path.join(DATA_DIR, x)), reverse=True)

        if files:
            print(f"\n Available Files in '{DATA_DIR}':")
            print("   [0] Manual Path Entry")
            for idx, f in enumerate(files):
                print(f"   [{idx+1}] {f}")

            while True:
                choice = input("\n >> Select file number [Default: 1]: ").strip()
                if not choice:
                    # Default to the newest file.
                    return os.path.join(DATA_DIR, files[0])
                if choice == '0':
                    break

                try:
                    file_idx = int(choice) - 1
                except ValueError:
                    print(" [!] Invalid input. Please enter a number.")
                    time.sleep(0.5)
                    continue

                if 0 <= file_idx < len(files):
                    return os.path.join(DATA_DIR, files[file_idx])
                print(" [!] Number out of range. Please try again.")
                time.sleep(0.5)

        return input(" >> Enter path to CSV/XLSX: ").strip() or None

    def _print_section_header(self, title: str) -> None:
        print("\n" + "="*60)
        print(f" {title}")
        print("="*60 + "\n")

    def _print_header(self) -> None:
        print("\n" + "#"*60)
        print("                 TRADE JOURNAL")
        print("#"*60)


if __name__ == "__main__":
    app = TradeJournalApp()
    try:
        app.menu()
    except KeyboardInterrupt:
        print("\n [!] Interrupted by user. Exiting.")
        time.sleep(0.5)
