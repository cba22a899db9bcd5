from aiogram.fsm.state import State, StatesGroup


class ProductAdd(StatesGroup):
    waiting_title = State()
    waiting_author = State()
    waiting_category = State()
    waiting_price = State()
    waiting_stock = State()
