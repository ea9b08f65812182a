"""
Default category taxonomy.

Ids are stable and referenced by stored transactions and limits, so
they must never be renamed. Names are shown to users as-is.
"""

from finance_tracker.models.category import Category, CategoryType, SubCategory


# (id, name, icon, type, [(sub_id, sub_name, sub_icon), ...])
_TAXONOMY = [
    ("alimentacao", "Alimentação", "Utensils", "expense", [
        ("cafeterias", "Cafeterias", "Coffee"),
        ("restaurante-delivery", "Restaurante ou Delivery", "Utensils"),
        ("supermercado", "Supermercado", "ShoppingCart"),
    ]),
    ("assinaturas", "Assinaturas", "Newspaper", "expense", [
        ("aplicativos", "Aplicativos", "Smartphone"),
        ("revistas-jornais", "Revistas e Jornais", "Newspaper"),
        ("servicos-digitais", "Serviços Digitais", "Globe"),
    ]),
    ("compras-lazer", "Compras e Lazer", "ShoppingCart", "expense", [
        ("arte-musica", "Arte e Música", "Music"),
        ("coisas-casa", "Coisas para Casa", "Home"),
        ("eletronicos", "Eletrônicos", "Smartphone"),
        ("esportes-equipamentos", "Esportes e Equipamentos", "Dumbbell"),
        ("eventos-atividades", "Eventos e Atividades", "Calendar"),
        ("festa-encontros", "Festa e Encontros", "Users"),
        ("fotografia", "Fotografia", "Camera"),
        ("jogos-entretenimento", "Jogos e Entretenimento", "Gamepad2"),
        ("pets", "Pets", "Heart"),
        ("suprimentos", "Suprimentos", "ShoppingCart"),
        ("presentes", "Presentes", "Gift"),
        ("roupas-acessorios", "Roupas e Acessórios", "Shirt"),
    ]),
    ("educacao-desenvolvimento", "Educação e Desenvolvimento", "GraduationCap", "expense", [
        ("cursos-treinamentos", "Cursos e Treinamentos", "Book"),
        ("livros-materiais", "Livros e Materiais", "Book"),
        ("mensalidade-escolar", "Mensalidade Escolar", "School"),
    ]),
    ("emergencia", "Emergência", "AlertTriangle", "expense", [
        ("despesas-emergenciais", "Despesas Emergenciais", "AlertTriangle"),
    ]),
    ("emprestimos", "Empréstimos", "CreditCard", "expense", [
        ("cartao-credito", "Cartão de Crédito", "CreditCard"),
        ("emprestimos-pessoais", "Empréstimos Pessoais", "Banknote"),
        ("financiamento-veiculo", "Financiamento de Veículo", "Car"),
    ]),
    ("entretenimento-digital", "Entretenimento Digital", "Tv", "expense", [
        ("aplicativos-ent", "Aplicativos", "Smartphone"),
        ("jogos-ent", "Jogos", "Gamepad2"),
    ]),
    ("hobbies-atividades", "Hobbies e Atividades de Lazer", "Palette", "expense", [
        ("arte-musica-hobby", "Arte e Música", "Music"),
        ("esportes-equipamentos-hobby", "Esportes e Equipamentos", "Dumbbell"),
        ("fotografia-hobby", "Fotografia", "Camera"),
    ]),
    ("impostos-taxas", "Impostos e Taxas", "FileText", "expense", [
        ("iptu", "IPTU", "Building"),
        ("ipva", "IPVA", "Car"),
        ("imposto-renda", "Imposto de Renda", "Calculator"),
    ]),
    ("investimentos", "Investimentos", "TrendingUp", "both", [
        ("acoes", "Ações", "TrendingUp"),
        ("fundos-imobiliarios", "Fundos Imobiliários", "Building"),
        ("criptomoedas", "Criptomoedas", "Coins"),
        ("dividendos", "Dividendos", "DollarSign"),
        ("renda-fixa", "Renda Fixa", "Target"),
    ]),
    ("manutencao-reparos", "Manutenção e Reparos", "Wrench", "expense", [
        ("reparos-eletrodomesticos", "Reparos de Eletrodomésticos", "Zap"),
        ("reparos-domesticos", "Reparos Domésticos", "Hammer"),
    ]),
    ("moradia", "Moradia", "Home", "expense", [
        ("agua", "Água", "Droplets"),
        ("aluguel", "Aluguel", "Home"),
        ("condominio", "Condomínio", "Building"),
        ("financiamento-imovel", "Financiamento de Imóvel", "Home"),
        ("gas", "Gás", "Zap"),
        ("internet-telefone", "Internet e Telefone", "Wifi"),
        ("luz", "Luz", "Zap"),
        ("reformas-melhorias", "Reformas e Melhorias", "Hammer"),
    ]),
    ("outros", "Outros", "DollarSign", "both", [
        ("outros-geral", "Outros", "DollarSign"),
    ]),
    ("poupanca", "Poupança", "PiggyBank", "expense", [
        ("fundo-emergencia", "Fundo de Emergência", "Shield"),
        ("reserva-curto-prazo", "Reserva de Curto Prazo", "Target"),
        ("reserva-longo-prazo", "Reserva de Longo Prazo", "TrendingUp"),
    ]),
    ("renda", "Renda", "DollarSign", "income", [
        ("renda-extra", "Renda Extra", "Plus"),
        ("rendimentos-investimentos", "Rendimentos de Investimentos", "TrendingUp"),
        ("salarios", "Salários", "Briefcase"),
        ("trabalho-conta", "Trabalho por Conta", "Users"),
    ]),
    ("saude-bem-estar", "Saúde e Bem-estar", "Heart", "expense", [
        ("academia", "Academia", "Dumbbell"),
        ("bem-estar-spa", "Bem-estar (Spa, Terapia)", "Heart"),
        ("consultas-tratamentos", "Consultas e Tratamentos", "Stethoscope"),
        ("farmacia-medicamentos", "Farmácia e Medicamentos", "Pill"),
        ("planos-saude", "Planos de Saúde", "Shield"),
    ]),
    ("seguros", "Seguros", "Shield", "expense", [
        ("seguro-automovel", "Seguro de Automóvel", "Car"),
        ("seguro-vida", "Seguro de Vida", "Heart"),
        ("seguro-residencial", "Seguro Residencial", "Home"),
    ]),
    ("servicos-financeiros", "Serviços Financeiros e Bancários", "University", "expense", [
        ("assinaturas-financeiras", "Assinaturas Financeiras", "CreditCard"),
        ("taxas-contas-bancarias", "Taxas de Contas Bancárias", "University"),
    ]),
    ("streaming", "Streaming", "Tv", "expense", [
        ("netflix", "Netflix", "Tv"),
        ("amazon-prime", "Amazon Prime", "Tv"),
        ("hbo", "HBO", "Tv"),
        ("disney", "Disney+", "Tv"),
    ]),
    ("transferencias-pagamentos", "Transferências e Pagamentos", "Send", "both", [
        ("boleto", "Boleto", "FileText"),
        ("cartao-credito-pag", "Cartão de Crédito", "CreditCard"),
        ("pagamentos-regulares", "Pagamentos Regulares", "Calendar"),
        ("pix-ted-doc", "PIX, TED ou DOC", "Send"),
        ("transferencias-contas", "Transferências entre Contas", "ArrowRightLeft"),
        ("transferencias-pessoas", "Transferências para Outras Pessoas", "Users"),
    ]),
    ("transporte", "Transporte", "Car", "expense", [
        ("aplicativo-mobilidade", "Aplicativo de Mobilidade", "Smartphone"),
        ("estacionamento-pedagio", "Estacionamento e Pedágio", "Car"),
        ("manutencao-carro", "Manutenção de Carro", "Wrench"),
        ("transporte-publico", "Transporte Público", "Truck"),
    ]),
    ("viagem", "Viagem", "Plane", "expense", [
        ("alimentacao-viagem", "Alimentação em Viagem", "Utensils"),
        ("hospedagem", "Hospedagem", "Bed"),
        ("passagens-transporte", "Passagens e Transporte", "Plane"),
        ("passeios-lazer", "Passeios e Lazer", "MapPin"),
    ]),
]

# Icons offered when the user creates a category or subcategory
AVAILABLE_ICONS = [
    "DollarSign", "Coffee", "ShoppingCart", "Utensils", "Home", "Car",
    "Heart", "Smartphone", "Book", "Music", "Camera", "Gamepad2",
    "TrendingUp", "PiggyBank", "CreditCard", "Shield", "Plane", "Dumbbell",
    "Stethoscope", "Tv", "Briefcase", "Gift", "Palette", "Wrench",
    "AlertTriangle", "Send", "Users", "Building", "Zap", "Droplets",
    "Wifi", "Plus",
]


def build_default_categories() -> list[Category]:
    """Fresh model instances for the default taxonomy."""
    return [
        Category(
            id=cat_id,
            name=name,
            icon=icon,
            type=CategoryType(cat_type),
            subcategories=[
                SubCategory(id=sub_id, name=sub_name, icon=sub_icon)
                for sub_id, sub_name, sub_icon in subs
            ],
        )
        for cat_id, name, icon, cat_type, subs in _TAXONOMY
    ]


DEFAULT_CATEGORIES = build_default_categories()
