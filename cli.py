# cli.py
import os
from datetime import datetime
from typing import List, Dict, Any, Optional

from rich.console import Console
from rich.table import Table
from rich.panel import Panel
from rich.prompt import IntPrompt, Confirm, Prompt
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich import box

from prompt_toolkit import prompt
from prompt_toolkit.completion import WordCompleter
from prompt_toolkit.styles import Style as PromptStyle

from sdk.stockclient import StockClient
from stockroom.core import LOW_STOCK_THRESHOLD

console = Console()
c = StockClient(base_url=os.getenv("STOCKROOM_API_URL", "http://127.0.0.1:8085"))


# Global state for status messages and caching
status_message = "Ready"
product_cache: List[Dict[str, Any]] = []

# Custom prompt style for prompt_toolkit
custom_style = PromptStyle.from_dict({
    'completion-menu.completion': 'bg:#008888 #ffffff',
    'completion-menu.completion.current': 'bg:#00aaaa #000000',
    'scrollbar.background': 'bg:#88aaaa',
    'scrollbar.button': 'bg:#222222',
})


# ---------------------------
# Display helpers
# ---------------------------
def show_products(products: List[Dict[str, Any]], title: str = "📦 Inventory"):
    if not products:
        console.print("[italic yellow]No products found[/italic yellow]")
        return

    table = Table(
        title=title,
        box=box.ROUNDED,
        header_style="bold cyan",
        title_style="bold magenta",
        show_lines=True
    )
    table.add_column("ID", style="dim", justify="right", width=6)
    table.add_column("Name", style="bold", width=20)
    table.add_column("Category", width=15)
    table.add_column("Price", justify="right", width=10)
    table.add_column("Qty", justify="right", width=8)
    table.add_column("Description", width=30)

    for p in products:
        qty = p.get("quantity", 0)
        # low rows are flagged for restocking
        qty_cell = f"[bold red]{qty}[/bold red]" if qty < LOW_STOCK_THRESHOLD else str(qty)
        table.add_row(
            str(p.get("id", "N/A")),
            p.get("name") or "-",
            p.get("category") or "-",
            f"${p.get('price', 0):.2f}",
            qty_cell,
            p.get("description") or "",
        )
    console.print(table)


def show_transactions(transactions: List[Dict[str, Any]]):
    if not transactions:
        console.print("[italic yellow]No transactions recorded[/italic yellow]")
        return

    names = {p.get("id"): p.get("name") for p in product_cache}
    table = Table(
        title="📋 Transaction Report",
        box=box.ROUNDED,
        header_style="bold blue",
        title_style="bold magenta",
    )
    table.add_column("#", style="dim", justify="right", width=6)
    table.add_column("Date", width=20)
    table.add_column("Product", width=24)
    table.add_column("Amount", justify="right", width=10)

    for t in transactions:
        amount = t.get("amount", 0)
        style = "green" if amount >= 0 else "red"
        pid = t.get("productId")
        product = names.get(pid)
        label = f"{pid} · {product}" if product else f"{pid} [dim](deleted)[/dim]"
        date = str(t.get("date", ""))[:19].replace("T", " ")
        table.add_row(str(t.get("id")), date, label, f"[{style}]{amount:+d}[/{style}]")
    console.print(table)


def show_dashboard(products: List[Dict[str, Any]], low_stock: List[Dict[str, Any]],
                   transactions: List[Dict[str, Any]]):
    stats = Table.grid(padding=(0, 4))
    for _ in range(3):
        stats.add_column(justify="center")
    stats.add_row(
        f"[bold cyan]{len(products)}[/bold cyan]",
        f"[bold red]{len(low_stock)}[/bold red]" if low_stock else "[bold green]0[/bold green]",
        f"[bold magenta]{len(transactions)}[/bold magenta]",
    )
    stats.add_row("Products", f"Low stock (< {LOW_STOCK_THRESHOLD})", "Transactions")
    console.print(Panel(stats, title="📊 Dashboard", border_style="cyan", expand=False))


def load_dashboard():
    products = try_api(c.list_products)
    low_stock = try_api(c.list_low_stock)
    transactions = try_api(c.list_transactions)
    if None in (products, low_stock, transactions):
        return
    show_dashboard(products, low_stock, transactions)


def show_status(message: str, is_success: bool = True):
    style = "green" if is_success else "red"
    return Panel.fit(f"[{style}]{message}[/{style}]", title="Status")


# ---------------------------
# API wrapper with exception handling
# ---------------------------
def try_api(fn, *args, success_msg: Optional[str] = None, **kwargs):
    """
    Calls fn(*args, **kwargs) behind a spinner.
    Returns the decoded result, or None after reporting the error.
    """
    global status_message
    try:
        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            transient=True,
            console=console,
        ) as progress:
            progress.add_task(description="Processing...", total=None)
            result = fn(*args, **kwargs)

        if success_msg:
            status_message = success_msg
            console.print(show_status(success_msg, True))
        return result
    except Exception as e:
        status_message = f"Error: {e}"
        console.print(show_status(f"Error: {e}", False))
        return None


# ---------------------------
# Autocompletion helpers
# ---------------------------
def refresh_products():
    global product_cache
    product_cache = try_api(c.list_products) or []
    return product_cache


def get_product_completer():
    if not product_cache:
        refresh_products()
    return WordCompleter([str(p.get("id")) for p in product_cache], ignore_case=True,
                         meta_dict={str(p.get("id")): p.get("name", "") for p in product_cache})


def create_header():
    header = Table(show_header=False, box=box.ROUNDED)
    header.add_column("left", width=30)
    header.add_column("center", width=40)
    header.add_column("right", width=30)

    now = datetime.now().strftime("%Y-%m-%d %H:%M:%S")
    header.add_row(
        "🏬 Stockroom",
        "[bold blue]Inventory Manager[/bold blue]",
        f"[dim]{now}[/dim]"
    )
    return Panel(header, style="bold blue")


# ---------------------------
# Input helpers
# ---------------------------
def prompt_with_autocomplete(message: str, completer=None, default: str = ""):
    return prompt(f"{message} ", completer=completer, style=custom_style, default=default)


def ask_float(message: str, default: float = 0.0) -> float:
    while True:
        raw = Prompt.ask(message, default=str(default))
        try:
            return float(raw)
        except ValueError:
            console.print("[red]Please enter a valid number.[/red]")


def ask_product_id() -> str:
    return prompt_with_autocomplete("Enter product ID", completer=get_product_completer()).strip()


# ---------------------------
# Main menu
# ---------------------------
def menu():
    global status_message

    console.clear()
    console.print(create_header())
    refresh_products()
    load_dashboard()

    while True:
        if status_message:
            console.print(show_status(status_message, "Error" not in status_message))

        menu_table = Table.grid(padding=(0, 2))
        menu_table.add_column("Key", style="bold cyan", width=4)
        menu_table.add_column("Option", width=30)
        menu_table.add_column("Key", style="bold cyan", width=4)
        menu_table.add_column("Option", width=30)

        options = [
            ("1", "📦 List products", "5", "⬆️ Restock"),
            ("2", "➕ Add product", "6", "⬇️ Record sale"),
            ("3", "✏️ Edit product", "7", "⚠️ Low stock"),
            ("4", "🗑️ Delete product", "8", "📋 Transaction report"),
            ("9", "📊 Dashboard", "q", "👋 Quit")
        ]
        for row in options:
            menu_table.add_row(*row)
        console.print(Panel(menu_table, title="📋 Menu", border_style="yellow"))

        choice = prompt_with_autocomplete(
            "\nChoose an option",
            completer=WordCompleter([str(i) for i in range(1, 10)] + ["q", "quit", "exit"])
        ).strip()

        if choice == "1":
            products = try_api(c.list_products, success_msg="Products loaded")
            if products is not None:
                show_products(products)

        elif choice == "2":
            name = prompt_with_autocomplete("Product name")
            category = prompt_with_autocomplete("🏷️ Category")
            description = prompt_with_autocomplete("Description")
            price = ask_float("💰 Price", default=0.0)
            qty = IntPrompt.ask("📦 Quantity", default=0)
            resp = try_api(c.create_product, name, price, qty, description, category,
                           success_msg=f"Product '{name}' added")
            if resp:
                show_products([resp], title="Added")
                refresh_products()

        elif choice == "3":
            pid = ask_product_id()
            console.print("[dim]Leave a field blank to keep its current value.[/dim]")
            fields = {
                "name": prompt_with_autocomplete("Name"),
                "category": prompt_with_autocomplete("Category"),
                "description": prompt_with_autocomplete("Description"),
                "price": prompt_with_autocomplete("Price"),
                "quantity": prompt_with_autocomplete("Quantity"),
            }
            fields = {k: v for k, v in fields.items() if v.strip()}
            resp = try_api(c.update_product, pid, success_msg=f"Product {pid} updated", **fields)
            if resp:
                show_products([resp], title="Updated")
                refresh_products()

        elif choice == "4":
            pid = ask_product_id()
            if Confirm.ask(f"Delete product {pid}?", default=False):
                try_api(c.delete_product, pid, success_msg=f"Product {pid} deleted")
                refresh_products()

        elif choice in ("5", "6"):
            pid = ask_product_id()
            qty = IntPrompt.ask("Units", default=1)
            action = c.restock if choice == "5" else c.sell
            verb = "restocked" if choice == "5" else "sold"
            resp = try_api(action, pid, qty, success_msg=f"{qty} unit(s) of product {pid} {verb}")
            if resp:
                show_products([resp], title="Stock now")
                refresh_products()

        elif choice == "7":
            low = try_api(c.list_low_stock, success_msg="Low-stock view loaded")
            if low is not None:
                show_products(low, title="⚠️ Low Stock (< 5 units)")

        elif choice == "8":
            txns = try_api(c.list_transactions, success_msg="Report loaded")
            if txns is not None:
                show_transactions(txns)

        elif choice == "9":
            load_dashboard()

        elif choice.lower() in ("q", "quit", "exit"):
            console.print("[bold]Bye 👋[/bold]")
            break

        else:
            status_message = f"Error: unknown option '{choice}'"


if __name__ == "__main__":
    menu()
